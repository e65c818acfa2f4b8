"""
Standard column types for block metadata tables.

Provides consistent types for slot and time columns across all models.
"""

from sqlalchemy import BigInteger, DateTime
from sqlalchemy.dialects import mysql

# Slot numbers and heights are unsigned 64-bit on MySQL
SlotType = BigInteger().with_variant(mysql.BIGINT(unsigned=True), "mysql")

# Block time with microsecond precision, stored as naive UTC
BlockTimeType = DateTime(timezone=False).with_variant(
    mysql.DATETIME(fsp=6), "mysql"
)
