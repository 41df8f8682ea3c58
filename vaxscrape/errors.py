class NotFoundError(LookupError):
    """Raised when a ref id has no matching row in its collection."""

    def __init__(self, collection: str, ref_ids):
        self.collection = collection
        self.ref_ids = list(ref_ids)
        super().__init__(f"instance not found: {collection} {self.ref_ids}")
