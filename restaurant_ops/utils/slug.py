import re
import unicodedata


def normalize_sub_domain(value: str | None) -> str:
    """Lowercase ASCII subdomain; keeps inner hyphens, drops everything else."""
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = value.strip().lower()
    value = re.sub(r"[^a-z0-9-]", "", value)

    return value.strip("-")
