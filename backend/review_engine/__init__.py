"""Storefront product review collection and moderation service."""
