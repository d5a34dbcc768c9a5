class WebDomain(str):
    """Value Object for a registrable web domain (lower-case, no leading dot)."""

    def __new__(cls, value: str) -> "WebDomain":
        normalized = value.strip().lstrip(".").lower()
        assert normalized and "/" not in normalized, "invalid web domain"
        return str.__new__(cls, normalized)

    def covers(self, host: str) -> bool:
        """True when ``host`` is this domain or one of its subdomains."""
        h = host.strip().lstrip(".").lower()
        return h == self or h.endswith("." + self)
