"""Services: storage, export and sheet sync."""
