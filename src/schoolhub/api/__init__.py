"""HTTP application for SchoolHub."""
