from typing import Iterable, Sequence

from markupsafe import escape

from .engine import GRID_SIZE

CELL_PX = 80
PADDING_PX = 20
MARKED_FILL = '#FFD700'
MAX_LABEL_CHARS = 12


def _label(text: str) -> str:
    if len(text) > MAX_LABEL_CHARS:
        return text[:MAX_LABEL_CHARS] + '...'
    return text


def render_card_svg(items: Sequence[str], marked_cells: Iterable[int]) -> str:
    """Render a card as a square SVG image, marked cells filled gold."""
    total = CELL_PX * GRID_SIZE + PADDING_PX * 2
    marked = set(marked_cells)
    parts = [
        f'<svg width="{total}" height="{total}" xmlns="http://www.w3.org/2000/svg">',
        f'<rect width="{total}" height="{total}" fill="white" stroke="black" stroke-width="2"/>',
    ]
    for row in range(GRID_SIZE):
        for col in range(GRID_SIZE):
            index = row * GRID_SIZE + col
            x = PADDING_PX + col * CELL_PX
            y = PADDING_PX + row * CELL_PX
            fill = MARKED_FILL if index in marked else 'white'
            text = items[index] if index < len(items) else ''
            parts.append(
                f'<rect x="{x}" y="{y}" width="{CELL_PX}" height="{CELL_PX}" fill="{fill}" stroke="black" stroke-width="1"/>'
            )
            parts.append(
                f'<text x="{x + CELL_PX // 2}" y="{y + CELL_PX // 2}" text-anchor="middle" '
                f'dominant-baseline="middle" font-size="10" font-family="Arial">{escape(_label(text))}</text>'
            )
    parts.append('</svg>')
    return ''.join(parts)
