"""Refurbished listing generator web app."""
