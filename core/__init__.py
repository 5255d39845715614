"""VendorSync core: configuration, logging, database and models."""
