# Overview: Public catalog routes (post types, riders, lockbox types).

from flask import Blueprint, jsonify

from ..services import catalog_service

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/catalog")


@catalog_bp.get("/post-types")
def list_post_types_route():
    return jsonify({"post_types": [p.to_dict() for p in catalog_service.list_post_types()]})


@catalog_bp.get("/riders")
def list_riders_route():
    return jsonify({"riders": [r.to_dict() for r in catalog_service.list_riders()]})


@catalog_bp.get("/lockbox-types")
def list_lockbox_types_route():
    return jsonify({"lockbox_types": [lb.to_dict() for lb in catalog_service.list_lockbox_types()]})
