from pydantic import AliasChoices


def either_case(name: str) -> AliasChoices:
    """Accept the canonical snake_case key and its legacy camelCase spelling."""
    head, *rest = name.split("_")
    return AliasChoices(name, head + "".join(part.title() for part in rest))
