import logging
from pymongo import MongoClient, ASCENDING
from pymongo.server_api import ServerApi
from pymongo.database import Database
from pymongo.collection import Collection

logger = logging.getLogger(__name__)


class DatabaseClient:
    """
    Owns the MongoDB client connection for the lifetime of the application.

    The application bootstrap constructs one instance and hands it to the
    services; nothing in the codebase reaches for a module-level connection.
    A pre-built client (e.g. ``mongomock.MongoClient()``) may be passed in.
    """

    def __init__(self, uri: str | None = None, db_name: str = "AppointmentsDB",
                 client: MongoClient | None = None):
        self.uri = uri
        self.db_name = db_name
        self.client: MongoClient | None = client
        self.db: Database | None = None

    def connect(self):
        """
        Establishes the connection to MongoDB.
        """
        if self.client is None:
            if not self.uri:
                raise Exception("MONGO_URI not found in environment variables")
            self.client = MongoClient(self.uri, server_api=ServerApi('1'))
            try:
                self.client.admin.command('ping')
                logger.info("Pinged your deployment. You successfully connected to MongoDB!")
            except Exception as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self.client = None
                self.db = None
                raise
        self.db = self.client[self.db_name]

    def get_database(self) -> Database:
        """
        Returns the database instance.
        """
        if self.db is None:
            self.connect()
        return self.db

    @property
    def users(self) -> Collection:
        """The credential store."""
        return self.get_database()["users"]

    @property
    def events(self) -> Collection:
        """The event store."""
        return self.get_database()["events"]

    def ensure_indexes(self):
        """
        Creates the unique identity indexes and the owner/date lookup index.
        """
        self.users.create_index([("email", ASCENDING)], unique=True)
        # Users without a username must not collide with each other
        self.users.create_index([("username", ASCENDING)], unique=True, sparse=True)
        self.events.create_index([("owner_id", ASCENDING), ("date", ASCENDING)])
        logger.info(f"Indexes ensured on database '{self.db_name}'")

    def ping(self) -> bool:
        """Returns True when the database answers a ping."""
        try:
            self.get_database().command('ping')
            return True
        except Exception as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    def close(self):
        """
        Closes the MongoDB connection.
        """
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed.")
