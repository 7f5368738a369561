"""Deterministic output filenames derived from page titles."""

RESERVED_CHARS = "|\\?*<:>+[]/"
MAX_NAME_LENGTH = 255
HTML_SUFFIX = ".html"
MAX_GENERATED_LENGTH = MAX_NAME_LENGTH - len(HTML_SUFFIX)


def normalize_name(name: str) -> str:
    """Transliterate a title into filename-safe characters.

    Control characters, spaces, non-ASCII and reserved characters become
    ``_``; an uppercase ASCII letter becomes ``_`` plus its lowercase form.
    """
    output = []
    for char in name:
        if char <= " " or char >= "\x7f" or char in RESERVED_CHARS:
            output.append("_")
        elif "A" <= char <= "Z":
            output.append("_" + char.lower())
        else:
            output.append(char)
    return "".join(output)


def ancestor_separator(title: str) -> str:
    return "_-" if title[:1].isupper() else "_-_"


def dynamic_filename(title: str, ancestor_titles: list[str]) -> str:
    """Build the relative output filename for a page.

    Args:
        title: The page's own title.
        ancestor_titles: Titles of its ancestors, nearest first.

    Returns:
        A path of the form ``./name.html``. Equal inputs always give equal
        names; distinct pages can collide and are not disambiguated here.
    """
    name = normalize_name(title)
    for ancestor in ancestor_titles:
        name += ancestor_separator(ancestor) + normalize_name(ancestor)
    name = name[:MAX_GENERATED_LENGTH] + HTML_SUFFIX
    return "./" + name.lstrip("_")
