"""Test suite for Ticketboard."""
