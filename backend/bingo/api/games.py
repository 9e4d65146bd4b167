from flask import Blueprint, Response, jsonify, request, current_app
from bingo import db, socketio
from bingo.models import Game, Template
from bingo.services.cards.engine import FREE_SPACE_INDEX, InsufficientOptions, generate_card
from bingo.services.cards.progression import InvalidDecision
from bingo.services.cards.session import GameSession
from bingo.services.cards.share import render_card_svg
from bingo.services.cards.store import SqlGameStore, StoreError


games = Blueprint('games', __name__)


def _room(game_id: str) -> str:
    return f"game:{game_id}"


def _emit_state(game_id: str) -> None:
    socketio.emit('state_update', {'game_id': game_id}, to=_room(game_id), namespace='/ws')


def _notify(event: str, payload: dict) -> None:
    socketio.emit(event, payload, to=_room(payload['game_id']), namespace='/ws')


def _open_session(game: Game) -> GameSession:
    return GameSession.from_record(
        game,
        store=SqlGameStore(),
        notify=_notify,
        logger=current_app.logger,
    )


@games.route('', methods=['POST'])
@games.route('/', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    template_id = data.get('template_id')
    if not template_id:
        return jsonify({'error': 'template_id is required'}), 400

    template = Template.query.filter_by(id=template_id).first()
    if not template:
        current_app.logger.warning(f"[create] template={template_id} not found")
        return jsonify({'error': 'Template not found'}), 404

    try:
        card = generate_card(template.items)
    except InsufficientOptions as exc:
        current_app.logger.warning(f"[create] template={template_id} {exc}")
        return jsonify({'error': str(exc)}), 400

    new_game = Game(
        template_id=template.id,
        template_name=template.name,
        items=card,
        marked_cells=[FREE_SPACE_INDEX],
        bingo_count=0,
        target_bingo_count=1,
    )
    db.session.add(new_game)
    db.session.commit()
    current_app.logger.info(f"[create] game={new_game.id} template={template.id}")
    return jsonify(new_game.to_dict()), 201


@games.route('', methods=['GET'])
@games.route('/', methods=['GET'])
def list_games():
    rows = Game.query.order_by(Game.created_at.asc()).all()
    return jsonify([g.to_dict() for g in rows])


@games.route('/active', methods=['GET'])
def active_games():
    limit = int(current_app.config.get('ACTIVE_GAMES_LIMIT', 30))
    rows = (Game.query.filter_by(completed=False)
            .order_by(Game.started_at.desc())
            .limit(limit).all())
    return jsonify([g.to_dict() for g in rows])


@games.route('/history', methods=['GET'])
def game_history():
    limit = int(current_app.config.get('HISTORY_LIMIT', 10))
    rows = (Game.query.filter_by(completed=True)
            .order_by(Game.completed_at.desc())
            .limit(limit).all())
    payload = []
    for g in rows:
        gd = g.to_dict()
        gd['completion_label'] = g.completion_label()
        payload.append(gd)
    return jsonify(payload)


@games.route('/<string:game_id>', methods=['GET'])
def get_game(game_id):
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify(game.to_dict(include_template=True))


@games.route('/<string:game_id>', methods=['PUT'])
def update_game(game_id):
    data = request.get_json(silent=True) or {}
    marked = data.get('marked_cells')
    if not isinstance(marked, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in marked):
        return jsonify({'error': 'marked_cells must be a list of integers'}), 400

    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404

    session = _open_session(game)
    try:
        session.set_marked(marked, complete=bool(data.get('completed')))
    except StoreError as exc:
        current_app.logger.error(f"[update] game={game_id} save failed: {exc}")
        return jsonify({'error': 'Failed to save game'}), 500
    _emit_state(game_id)
    payload = game.to_dict()
    payload['state'] = session.state.name
    return jsonify(payload)


@games.route('/<string:game_id>', methods=['DELETE'])
def delete_game(game_id):
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404
    db.session.delete(game)
    db.session.commit()
    current_app.logger.info(f"[delete] game={game_id}")
    return jsonify({'message': 'Game deleted'})


@games.route('/<string:game_id>/toggle', methods=['POST'])
def toggle_cell(game_id):
    data = request.get_json(silent=True) or {}
    index = data.get('index')
    if not isinstance(index, int) or isinstance(index, bool):
        return jsonify({'error': 'index must be an integer'}), 400

    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404

    session = _open_session(game)
    changed = session.toggle(index)
    if changed:
        _emit_state(game_id)
    payload = session.to_dict()
    payload['changed'] = changed
    return jsonify(payload)


@games.route('/<string:game_id>/decision', methods=['POST'])
def decide(game_id):
    data = request.get_json(silent=True) or {}
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404

    session = _open_session(game)
    try:
        session.decide(data.get('choice'))
    except InvalidDecision as exc:
        return jsonify({'error': str(exc)}), 400
    except StoreError as exc:
        current_app.logger.error(f"[decision] game={game_id} save failed: {exc}")
        return jsonify({'error': 'Failed to save game'}), 500
    _emit_state(game_id)
    return jsonify(session.to_dict())


@games.route('/<string:game_id>/regenerate', methods=['POST'])
def regenerate(game_id):
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404
    if game.completed:
        return jsonify({'error': 'Completed games cannot be regenerated'}), 400
    if not game.template:
        return jsonify({'error': 'Template not found'}), 404

    pool = game.template.items
    session = _open_session(game)
    try:
        session.regenerate(pool)
    except InsufficientOptions as exc:
        return jsonify({'error': str(exc)}), 400
    except StoreError as exc:
        current_app.logger.error(f"[regenerate] game={game_id} save failed: {exc}")
        return jsonify({'error': 'Failed to save game'}), 500
    _emit_state(game_id)
    return jsonify(session.to_dict())


@games.route('/share/<string:game_id>', methods=['POST'])
def share_card(game_id):
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        return jsonify({'error': 'Game not found'}), 404
    svg = render_card_svg(game.items, game.marked_cells)
    current_app.logger.info(f"[share] game={game_id}")
    return Response(svg, mimetype='image/svg+xml')
