import logging
import os

import mysql.connector
from config import Config

logger = logging.getLogger(__name__)

SCHEMA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'schema.sql')


def schema_statements(path=SCHEMA_PATH):
    with open(path, 'r') as f:
        # MySQL executes one statement per call
        return [s.strip() for s in f.read().split(';') if s.strip()]


def init_db():
    conn = mysql.connector.connect(
        host=Config.MYSQL_HOST,
        user=Config.MYSQL_USER,
        password=Config.MYSQL_PASSWORD,
        database=Config.MYSQL_DATABASE
    )
    try:
        with conn.cursor() as cur:
            statements = schema_statements()
            for statement in statements:
                cur.execute(statement)
            conn.commit()
        logger.info("Applied %d schema statements to %s", len(statements), Config.MYSQL_DATABASE)
    finally:
        conn.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
