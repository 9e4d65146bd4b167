from bingo import db, bcrypt
from flask_login import UserMixin
from bingo.services.cards.engine import CELL_COUNT, count_bingos
from datetime import datetime, timezone
import json
import string
import random
import uuid


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id():
    return str(uuid.uuid4())


def _isoformat(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


def generate_share_code(length=6):
    """Generate a unique, short template share code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Template.query.filter_by(code=code).first():
            return code


class Template(db.Model):
    __tablename__ = 'template'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    items_json = db.Column('items', db.Text, nullable=False, default='[]')  # JSON-encoded list of options
    is_custom = db.Column(db.Boolean, default=False, nullable=False)
    code = db.Column(db.String(16), unique=True, index=True, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    games = db.relationship('Game', back_populates='template', cascade='all, delete-orphan')

    @property
    def items(self):
        return json.loads(self.items_json) if self.items_json else []

    @items.setter
    def items(self, value):
        self.items_json = json.dumps(list(value))

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'items': self.items,
            'is_custom': self.is_custom,
            'code': self.code,
            'created_at': _isoformat(self.created_at),
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    template_id = db.Column(db.String(36), db.ForeignKey('template.id', ondelete='CASCADE'), nullable=False, index=True)
    template_name = db.Column(db.String(128), nullable=False)
    items_json = db.Column('items', db.Text, nullable=False, default='[]')  # JSON-encoded card, 25 cells
    marked_cells_json = db.Column('marked_cells', db.Text, nullable=False, default='[]')  # JSON-encoded list of indices
    completed = db.Column(db.Boolean, default=False, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    bingo_count = db.Column(db.Integer, default=0, nullable=False)
    target_bingo_count = db.Column(db.Integer, default=1, nullable=False)  # 1, 3 or 25
    pending_target = db.Column(db.Integer, nullable=True)  # set while a continue decision is open
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    started_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    # Seconds since started_at
    first_bingo_time = db.Column(db.Integer, nullable=True)
    three_bingos_time = db.Column(db.Integer, nullable=True)
    full_card_time = db.Column(db.Integer, nullable=True)
    duration = db.Column(db.Integer, nullable=True)
    template = db.relationship('Template', back_populates='games')

    @property
    def items(self):
        return json.loads(self.items_json) if self.items_json else []

    @items.setter
    def items(self, value):
        self.items_json = json.dumps(list(value))

    @property
    def marked_cells(self):
        return json.loads(self.marked_cells_json) if self.marked_cells_json else []

    @marked_cells.setter
    def marked_cells(self, value):
        self.marked_cells_json = json.dumps(sorted(int(v) for v in value))

    def completion_label(self):
        if len(self.marked_cells) == CELL_COUNT:
            return 'Full Bingo'
        bingos = self.bingo_count if self.bingo_count is not None else count_bingos(self.marked_cells)
        if bingos >= 3:
            return '3 Bingo'
        return '1 Bingo'

    def to_dict(self, include_template=False):
        payload = {
            'id': self.id,
            'template_id': self.template_id,
            'template_name': self.template_name,
            'items': self.items,
            'marked_cells': self.marked_cells,
            'completed': self.completed,
            'completed_at': _isoformat(self.completed_at),
            'bingo_count': self.bingo_count,
            'target_bingo_count': self.target_bingo_count,
            'pending_target': self.pending_target,
            'created_at': _isoformat(self.created_at),
            'started_at': _isoformat(self.started_at),
            'first_bingo_time': self.first_bingo_time,
            'three_bingos_time': self.three_bingos_time,
            'full_card_time': self.full_card_time,
            'duration': self.duration,
        }
        if include_template:
            payload['template'] = self.template.to_dict() if self.template else None
        return payload


class Feedback(db.Model):
    __tablename__ = 'feedback'
    id = db.Column(db.Integer, primary_key=True)
    message = db.Column(db.Text, nullable=False)
    email = db.Column(db.String(256), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'message': self.message,
            'email': self.email,
            'created_at': _isoformat(self.created_at),
        }
