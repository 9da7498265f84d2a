"""
Snowflake connection factory - Form Scoring & Access Engine
formengine/services/snowflake.py
"""

import snowflake.connector

from formengine.config import settings
from formengine.core.exceptions import DatabaseConnectionException


def get_snowflake_connection():
    """
    Open a Snowflake connection from application settings.
    Used by repositories through BaseRepository.get_connection().
    """
    if not settings.snowflake_configured:
        raise DatabaseConnectionException("Snowflake credentials are not configured")

    return snowflake.connector.connect(
        account=settings.SNOWFLAKE_ACCOUNT,
        user=settings.SNOWFLAKE_USER,
        password=settings.SNOWFLAKE_PASSWORD.get_secret_value(),
        warehouse=settings.SNOWFLAKE_WAREHOUSE,
        database=settings.SNOWFLAKE_DATABASE,
        schema=settings.SNOWFLAKE_SCHEMA,
        role=settings.SNOWFLAKE_ROLE,
    )
