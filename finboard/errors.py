class NotFoundError(LookupError):
    """A referenced record does not exist or belongs to another user."""
