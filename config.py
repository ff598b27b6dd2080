import os
import mysql.connector
from mysql.connector import pooling
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.getenv('SECRET_KEY')
    MYSQL_HOST = os.getenv('MYSQL_HOST')
    MYSQL_USER = os.getenv('MYSQL_USER')
    MYSQL_PASSWORD = os.getenv('MYSQL_PASSWORD')
    MYSQL_DATABASE = os.getenv('MYSQL_DATABASE', 'moneytor')
    MYSQL_POOL_SIZE = int(os.getenv('MYSQL_POOL_SIZE', '5'))

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    WTF_CSRF_ENABLED = True

    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', 'uploads')
    AVATAR_FOLDER = os.path.join(UPLOAD_FOLDER, 'avatars')
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    TRANSACTIONS_PER_PAGE = int(os.getenv('TRANSACTIONS_PER_PAGE', '25'))
    REPORT_TRANSACTION_LIMIT = 100

    @staticmethod
    def init_db(app):
        app.db_pool = mysql.connector.pooling.MySQLConnectionPool(
            pool_name="moneytor_pool",
            pool_size=Config.MYSQL_POOL_SIZE,
            host=Config.MYSQL_HOST,
            user=Config.MYSQL_USER,
            password=Config.MYSQL_PASSWORD,
            database=Config.MYSQL_DATABASE
        )
