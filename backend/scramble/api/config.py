from flask import Blueprint, jsonify

from scramble.services import configuration

config_api = Blueprint('config_api', __name__)


@config_api.route('/keys', methods=['GET'])
def keys():
    return jsonify(configuration.list_keys())


@config_api.route('/<key>/metadata', methods=['GET'])
def metadata(key):
    return jsonify(configuration.get_metadata(key))


@config_api.route('/<key>/reload', methods=['POST'])
def reload_one(key):
    return jsonify(configuration.reload_configuration(key))


@config_api.route('/reload', methods=['POST'])
def reload_all():
    return jsonify(configuration.reload_all())
