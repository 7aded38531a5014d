"""Shape of the value every handler returns."""


def summarize(card: dict) -> dict:
    return {
        "id": card["id"],
        "slug": card["slug"],
        "type": card["type"],
        "version": card["version"],
    }
