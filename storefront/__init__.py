"""Decor rental catalogue and quote backend."""
