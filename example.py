"""Example usage of the kiodb library."""

from pathlib import Path

from kiodb import Database
from kiodb.dump import to_markdown

data_file = Path("./example_data/people.kiod")

with Database(data_file) as db:
    if not db.column_names:
        db.add_columns(
            [
                {"name": "id", "type": "number", "unique": True},
                {"name": "name", "type": "string"},
                {"name": "age", "type": "number", "default": 0},
                {"name": "tags", "type": "object", "default": []},
            ]
        )

    people = [
        {"id": 1, "name": "Alice", "age": 30},
        {"id": 2, "name": "Bob", "age": 25, "tags": ["admin"]},
        {"id": 3, "name": "Charlie", "age": 35},
        {"id": 4, "name": "Diana", "age": 28},
        {"id": 5, "name": "Eve", "age": 17},
    ]

    print("Inserting people...")
    for person in people:
        if db.select_unique({"column": "id", "operand": person["id"]}) is None:
            print(f"  Inserted: {db.insert(person)}")

    print("\nAdults:")
    for row in db.select("age >= 18"):
        print(f"  [{row['id']}] {row['name']}, age {row['age']}")

    db.update({"tags": ["minor"]}, "age < 18")

    print()
    print(to_markdown(db))

    print("=" * 60)
    print("You can now query this file with the kiodb shell:")
    print(f"  kiodb {data_file}")
    print("\nExample commands:")
    print("  select")
    print("  select where age >= 30")
    print('  update {"age": 31} where name == "Alice"')
    print("  delete where id == 5")
    print("  export people 20")
