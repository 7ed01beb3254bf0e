"""Shared markdown-it syntax tree utilities"""


def heading_level(node) -> int | None:
    """Return the heading level (1-6) for a heading node, else None."""
    if node.type == 'heading' and node.tag and node.tag[0] == 'h' and node.tag[1:].isdigit():
        return int(node.tag[1:])
    return None


def is_list(node) -> bool:
    return node.type in ('bullet_list', 'ordered_list')
