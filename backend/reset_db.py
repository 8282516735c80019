"""Reset database to clean state."""
from src.lib.db import engine
from sqlalchemy import text

print("Resetting database...")

with engine.connect() as conn:
    # Drop all tables
    conn.execute(text("DROP TABLE IF EXISTS transactions CASCADE"))
    conn.execute(text("DROP TABLE IF EXISTS receipt_counters CASCADE"))
    conn.execute(text("DROP TABLE IF EXISTS customers CASCADE"))
    conn.execute(text("DROP TABLE IF EXISTS admins CASCADE"))
    conn.execute(text("DROP TABLE IF EXISTS alembic_version CASCADE"))

    # Drop all enum types
    conn.execute(text("DROP TYPE IF EXISTS service_category CASCADE"))
    conn.execute(text("DROP TYPE IF EXISTS payment_mode CASCADE"))

    conn.commit()
    print("Database reset complete! Run `alembic upgrade head` to recreate the schema.")
