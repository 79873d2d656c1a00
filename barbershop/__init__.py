"""Barbershop booking service."""
