"""Lab Code Set Builder backend."""
