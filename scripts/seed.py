"""
Database Seeding Script

Loads sample menu items and reviews into the configured MongoDB database.
The API has no endpoint for writing reviews, so this is how they get there.
Run from project root: python scripts/seed.py [--drop] [--admin EMAIL]
"""

import argparse
import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pymongo import MongoClient
from pymongo.server_api import ServerApi

from bistro.core.config import get_settings
from bistro.models import Collection, UserRole

MENU_ITEMS = [
    {"name": "Escalope de Veau", "recipe": "Veal escalope, lemon butter, capers.", "category": "popular", "price": 14.5},
    {"name": "Chicken and Walnut Salad", "recipe": "Grilled chicken, walnuts, greens.", "category": "salad", "price": 13.5},
    {"name": "Fish Parmentier", "recipe": "Baked cod under mashed potato.", "category": "popular", "price": 9.5},
    {"name": "Roasted Pork Belly", "recipe": "Slow roasted pork belly, apple sauce.", "category": "offered", "price": 14.5},
    {"name": "Haddock", "recipe": "Pan fried haddock, peas, lemon.", "category": "soup", "price": 14.7},
    {"name": "Tuna Niçoise", "recipe": "Tuna, eggs, olives, green beans.", "category": "salad", "price": 10.2},
    {"name": "Margherita Pizza", "recipe": "Tomato, mozzarella, basil.", "category": "pizza", "price": 12.0},
    {"name": "Chocolate Fondant", "recipe": "Warm chocolate cake, vanilla ice cream.", "category": "dessert", "price": 7.5},
    {"name": "Iced Lemon Tea", "recipe": "Black tea, lemon, mint.", "category": "drinks", "price": 3.5},
]

REVIEWS = [
    {"name": "Jane Doe", "details": "The pork belly was the best I have had in years.", "rating": 5},
    {"name": "Tom Brown", "details": "Friendly staff, quick delivery, soup was a bit cold.", "rating": 4},
    {"name": "Amy Wilson", "details": "Great salads and fair prices.", "rating": 5},
]


def seed(drop: bool = False, admin_email: str = None) -> None:
    """Insert sample data into empty collections."""
    settings = get_settings()
    client = MongoClient(settings.mongo_url, server_api=ServerApi("1"))
    db = client[settings.database_name]

    print("=" * 60)
    print("🌱 SEEDING DATABASE")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🗄️  Database: {settings.database_name}")
    print("=" * 60)

    try:
        for name, documents in (
            (Collection.MENUS.value, MENU_ITEMS),
            (Collection.REVIEWS.value, REVIEWS),
        ):
            collection = db[name]
            if drop:
                collection.delete_many({})
            if collection.estimated_document_count():
                print(f"⚠️ {name}: not empty, skipped (use --drop to replace)")
                continue
            result = collection.insert_many([dict(doc) for doc in documents])
            print(f"✅ {name}: {len(result.inserted_ids)} documents inserted")

        if admin_email:
            db[Collection.USERS.value].update_one(
                {"email": admin_email},
                {"$set": {"email": admin_email, "role": UserRole.ADMIN.value}},
                upsert=True,
            )
            print(f"✅ users: {admin_email} is an admin")
    finally:
        client.close()

    print("=" * 60)
    print("✅ SEEDING COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the bistro database")
    parser.add_argument("--drop", action="store_true", help="Replace existing menu items and reviews")
    parser.add_argument("--admin", metavar="EMAIL", help="Create or promote this user to admin")
    args = parser.parse_args()
    seed(drop=args.drop, admin_email=args.admin)
