"""Domain models shared by resolution, review dispatch and rendering."""
