from flask import Blueprint, jsonify, request

from scramble.api.params import json_body, require
from scramble.services import features as feature_service

features = Blueprint('features', __name__)


@features.route('/all', methods=['GET'])
def list_flags():
    term = request.args.get('q')
    rows = feature_service.search(term) if term else feature_service.list_flags()
    return jsonify([f.to_dict() for f in rows])


@features.route('/active', methods=['GET'])
def active_flags():
    return jsonify([f.name for f in feature_service.enabled_flags()])


@features.route('/inactive', methods=['GET'])
def inactive_flags():
    return jsonify([f.name for f in feature_service.disabled_flags()])


@features.route('/recent', methods=['GET'])
def recent_changes():
    changes = feature_service.recently_changed()
    return jsonify({state: [f.to_dict() for f in rows] for state, rows in changes.items()})


@features.route('/statistics', methods=['GET'])
def statistics():
    return jsonify(feature_service.statistics())


@features.route('/', methods=['POST'])
def create_flag():
    data = json_body()
    (name,) = require(data, 'name')
    flag = feature_service.create_flag(name, data.get('description'), bool(data.get('enabled', False)))
    return jsonify(flag.to_dict()), 201


@features.route('/<name>', methods=['GET'])
def get_flag(name):
    flag = feature_service.get_flag(name)
    result = flag.to_dict()
    result['active'] = feature_service.is_enabled(name)
    return jsonify(result)


@features.route('/<name>', methods=['PATCH'])
def update_flag(name):
    data = json_body()
    flag = feature_service.update_description(name, data.get('description'))
    return jsonify(flag.to_dict())


@features.route('/<name>', methods=['DELETE'])
def delete_flag(name):
    feature_service.delete_flag(name)
    return jsonify({'success': True})


@features.route('/<name>/enable', methods=['POST'])
def enable_flag(name):
    return jsonify(feature_service.set_enabled(name, True).to_dict())


@features.route('/<name>/disable', methods=['POST'])
def disable_flag(name):
    return jsonify(feature_service.set_enabled(name, False).to_dict())


@features.route('/<name>/toggle', methods=['POST'])
def toggle_flag(name):
    return jsonify(feature_service.toggle(name).to_dict())
