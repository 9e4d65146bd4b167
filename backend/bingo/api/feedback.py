from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from bingo import db
from bingo.models import Feedback


feedback = Blueprint('feedback', __name__)


@feedback.route('', methods=['POST'])
@feedback.route('/', methods=['POST'])
def submit_feedback():
    data = request.get_json(silent=True) or {}
    message = data.get('message')
    if not isinstance(message, str) or not message.strip():
        current_app.logger.warning("[feedback] rejected empty message")
        return jsonify({'error': 'Message is required'}), 400
    email = data.get('email')
    email = email.strip() if isinstance(email, str) and email.strip() else None

    entry = Feedback(message=message.strip(), email=email)
    db.session.add(entry)
    db.session.commit()
    current_app.logger.info(f"[feedback] stored id={entry.id} email={email}")
    return jsonify({'success': True, 'message': 'Feedback sent successfully'}), 201


@feedback.route('', methods=['GET'])
@feedback.route('/', methods=['GET'])
@login_required
def list_feedback():
    rows = Feedback.query.order_by(Feedback.created_at.desc(), Feedback.id.desc()).all()
    return jsonify([f.to_dict() for f in rows])
