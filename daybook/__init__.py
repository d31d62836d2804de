"""daybook: day / routine / wishlist rules on top of a Supabase project."""

__version__ = "0.1.0"
