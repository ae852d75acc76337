"""Ticketing admin backend with a Monday.com webhook adapter."""
