from flask import Blueprint, jsonify, request, current_app
from bingo import db
from bingo.models import Template, generate_share_code


templates = Blueprint('templates', __name__)


def _clean_items(raw):
    if not isinstance(raw, list):
        return None
    items = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            return None
        items.append(item.strip())
    return items


@templates.route('', methods=['GET'])
@templates.route('/', methods=['GET'])
def list_templates():
    rows = Template.query.order_by(Template.created_at.asc()).all()
    current_app.logger.info(f"[templates] listed count={len(rows)}")
    return jsonify([t.to_dict() for t in rows])


@templates.route('', methods=['POST'])
@templates.route('/', methods=['POST'])
def create_template():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    description = (data.get('description') or '').strip() or None
    items = _clean_items(data.get('items'))
    min_options = int(current_app.config.get('MIN_TEMPLATE_OPTIONS', 25))

    if not name:
        return jsonify({'error': 'Template name is required'}), 400
    if items is None:
        return jsonify({'error': 'Items must be a list of non-empty strings'}), 400
    if len(items) < min_options:
        current_app.logger.warning(f"[templates] rejected name={name!r} items={len(items)}")
        return jsonify({'error': f'Template must have at least {min_options} items'}), 400

    template = Template(
        name=name,
        description=description,
        items=items,
        is_custom=True,
        code=generate_share_code(int(current_app.config.get('SHARE_CODE_LENGTH', 6))),
    )
    db.session.add(template)
    db.session.commit()
    current_app.logger.info(f"[templates] created id={template.id} code={template.code} items={len(items)}")
    return jsonify(template.to_dict()), 201


@templates.route('/<string:template_id>', methods=['GET'])
def get_template(template_id):
    template = Template.query.filter_by(id=template_id).first()
    if not template:
        return jsonify({'error': 'Template not found'}), 404
    return jsonify(template.to_dict())


@templates.route('/code/<string:code>', methods=['GET'])
def get_template_by_code(code):
    template = Template.query.filter_by(code=code.strip().upper()).first()
    if not template:
        return jsonify({'error': 'Game code not found'}), 404
    return jsonify(template.to_dict())


@templates.route('/<string:template_id>/share-code', methods=['POST'])
def share_template(template_id):
    template = Template.query.filter_by(id=template_id).first()
    if not template:
        return jsonify({'error': 'Template not found'}), 404
    if not template.code:
        template.code = generate_share_code(int(current_app.config.get('SHARE_CODE_LENGTH', 6)))
        db.session.add(template)
        db.session.commit()
        current_app.logger.info(f"[templates] share code id={template.id} code={template.code}")
    return jsonify({'code': template.code})


@templates.route('/<string:template_id>', methods=['DELETE'])
def delete_template(template_id):
    template = Template.query.filter_by(id=template_id).first()
    if not template:
        return jsonify({'error': 'Template not found'}), 404
    if not template.is_custom:
        return jsonify({'error': 'Built-in templates cannot be deleted'}), 403
    db.session.delete(template)
    db.session.commit()
    current_app.logger.info(f"[templates] deleted id={template_id}")
    return jsonify({'message': 'Template deleted'})
