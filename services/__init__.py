"""VendorSync services."""
