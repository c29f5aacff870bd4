"""Reviews module - storefront submissions and merchant moderation."""
