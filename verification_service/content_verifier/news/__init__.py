"""News text checks against the Wikipedia page summary endpoint."""
