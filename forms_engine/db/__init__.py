"""Database access for the SQL session cache backend."""
