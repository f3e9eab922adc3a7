# marketplace/db/models/category.py
# Closed category catalogue. Static: never read from the database.

CATEGORIES = (
    {"id": "home_services", "name": "Home Services", "icon": "🏠"},
    {"id": "automotive", "name": "Automotive", "icon": "🚗"},
    {"id": "healthcare", "name": "Healthcare", "icon": "🏥"},
    {"id": "education", "name": "Education", "icon": "📚"},
    {"id": "technology", "name": "Technology", "icon": "💻"},
    {"id": "beauty_wellness", "name": "Beauty & Wellness", "icon": "💄"},
    {"id": "professional_services", "name": "Professional Services", "icon": "💼"},
    {"id": "entertainment", "name": "Entertainment", "icon": "🎭"},
    {"id": "maintenance", "name": "Maintenance", "icon": "🔧"},
    {"id": "consulting", "name": "Consulting", "icon": "📋"},
    {"id": "other", "name": "Other", "icon": "✨"},
)

CATEGORY_IDS = tuple(c["id"] for c in CATEGORIES)


def list_categories() -> list[dict]:
    # fresh copies so callers can't mutate the catalogue
    return [dict(c) for c in CATEGORIES]
