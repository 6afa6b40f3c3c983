"""Create MongoDB indexes once, outside the request path."""
import os

from dotenv import load_dotenv

from dietcraft.services.stores.mongo import MongoStore


def main():
    load_dotenv()
    uri = os.getenv("MONGODB_URI")
    if not uri:
        raise RuntimeError("MONGODB_URI is required to create indexes.")

    store = MongoStore(uri, db_name=os.getenv("MONGODB_DB", "dietcraft"))
    if not store.ensure_indexes():
        raise SystemExit(1)

    print("Index creation completed.")


if __name__ == "__main__":
    main()
