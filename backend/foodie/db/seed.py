"""
Database Seeding Script
Populates the lookup tables used by recipes and shopping lists.

This script:
    1. Creates tables if they don't exist
    2. Inserts default seasons, protein/carb types, measurements,
       preparations and shopping categories
    3. Skips names that already exist (safe to run repeatedly)

Usage:
    # From backend directory
    python -m foodie.db.seed

The same seeding runs at application startup.
"""

import sys
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodie.db.session import SessionLocal, engine
from foodie.models import (
    Base,
    CarbType,
    Measurement,
    PantryCategory,
    Preparation,
    ProteinType,
    Season,
    SupermarketCategory,
)


DEFAULT_LOOKUPS = {
    Season: ["Summer", "Autumn", "Winter", "Spring", "All Year"],
    ProteinType: ["Chicken", "Beef", "Pork", "Lamb", "Fish", "Seafood", "Vegetarian"],
    CarbType: ["Rice", "Pasta", "Potato", "Noodles", "Bread", "Salad"],
    Measurement: ["g", "kg", "ml", "l", "tsp", "tbsp", "cup", "whole", "pinch", "bunch", "clove", "can"],
    Preparation: ["chopped", "diced", "sliced", "grated", "minced", "crushed", "julienned", "finely chopped"],
    SupermarketCategory: [
        "Fruit & Veg",
        "Meat & Seafood",
        "Deli",
        "Dairy & Eggs",
        "Bakery",
        "Frozen",
        "Pantry",
    ],
    PantryCategory: [
        "Herbs & Spices",
        "Sauces & Condiments",
        "Oils & Vinegars",
        "Baking",
        "Canned Goods",
        "Grains & Pasta",
        "Stock & Soups",
    ],
}


def seed_lookups(db: Session, lookups: Dict[type, List[str]] = None) -> dict:
    """
    Insert default lookup rows that are not present yet.

    Args:
        db: Database session
        lookups: Mapping of model class to names (defaults to DEFAULT_LOOKUPS)

    Returns:
        dict with statistics:
            - inserted: Number of rows inserted
            - skipped: Number of names already present
    """
    stats = {"inserted": 0, "skipped": 0}

    for model, names in (lookups or DEFAULT_LOOKUPS).items():
        existing = {row.name for row in db.query(model.name).all()}
        for position, name in enumerate(names):
            if name in existing:
                stats["skipped"] += 1
                continue
            db.add(model(name=name, sort_order=position))
            stats["inserted"] += 1

    try:
        db.commit()
    except IntegrityError:
        # Another process seeded concurrently
        db.rollback()
        stats["inserted"] = 0

    return stats


def main():
    """
    Main function to run seeding script.

    Usage:
        python -m foodie.db.seed
    """
    print("=" * 60)
    print("Lookup Tables Seeding Script")
    print("=" * 60)

    print("\nCreating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ Tables created")

    db = SessionLocal()
    try:
        stats = seed_lookups(db)
        print(f"  Rows inserted:  {stats['inserted']}")
        print(f"  Rows skipped:   {stats['skipped']}")
        print("\n✓ Seeding completed successfully!")
    except Exception as e:
        print(f"\n✗ UNEXPECTED ERROR: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
