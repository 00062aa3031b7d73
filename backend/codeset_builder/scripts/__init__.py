"""Command-line tools for the Lab Code Set Builder."""
