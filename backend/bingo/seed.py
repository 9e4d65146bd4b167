"""Built-in themes inserted into an empty template table."""
from bingo import db
from bingo.models import Template

DEFAULT_TEMPLATES = [
    {
        'name': 'Office Jargon',
        'items': [
            'Synergy', 'Circle Back', 'Low-Hanging Fruit', 'Think Outside the Box', 'Touch Base',
            'Paradigm Shift', 'Leverage', 'Bandwidth', 'Deep Dive', 'Move the Needle',
            'Best Practice', 'Core Competency', 'Value Add', 'Win-Win', 'Game Changer',
            'Take it Offline', 'Drill Down', 'Run it Up the Flagpole', 'Boil the Ocean', 'Drink the Kool-Aid',
            'Peel the Onion', 'Parking Lot', 'Ballpark Figure', 'Rubber Meets the Road', 'Push the Envelope',
        ],
    },
    {
        'name': 'Birds',
        'items': [
            'Robin', 'Blue Jay', 'Cardinal', 'Sparrow', 'Crow',
            'Eagle', 'Hawk', 'Owl', 'Woodpecker', 'Hummingbird',
            'Pigeon', 'Seagull', 'Pelican', 'Flamingo', 'Penguin',
            'Parrot', 'Toucan', 'Peacock', 'Swan', 'Duck',
            'Goose', 'Turkey', 'Chicken', 'Ostrich', 'Emu',
        ],
    },
    {
        'name': 'Customer Service',
        'items': [
            'Can I speak to a manager?', 'I want a refund', 'This is unacceptable',
            "I've been waiting forever", 'Your website is broken', "I didn't receive my order",
            'The product is defective', 'I was promised...', "I'll take my business elsewhere",
            "I'm a loyal customer", 'This is ridiculous', 'I demand compensation',
            "I'll leave a bad review", 'I know the owner', "I'm never shopping here again",
            'Can you make an exception?', 'I need this today', 'Why is this so expensive?',
            'I saw it cheaper elsewhere', 'The ad said...', 'I lost my receipt',
            'Can you price match?', 'I changed my mind', "This doesn't fit", 'I want to speak to corporate',
        ],
    },
]


def seed_default_templates() -> int:
    """Insert the built-in themes when no template exists. Returns rows added."""
    if Template.query.first() is not None:
        return 0
    for theme in DEFAULT_TEMPLATES:
        db.session.add(Template(name=theme['name'], items=theme['items'], is_custom=False))
    db.session.commit()
    return len(DEFAULT_TEMPLATES)
