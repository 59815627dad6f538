"""Services package for the Example Module."""
