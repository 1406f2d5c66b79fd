"""
Call-log API routes: finished hotline calls persisted in MongoDB.
"""
from bson import ObjectId
from bson.errors import InvalidId
from flask import Blueprint, jsonify, request

import db

calls_bp = Blueprint("calls", __name__, url_prefix="/api/calls")


@calls_bp.route("", methods=["GET"])
def get_calls():
    """
    Fetch persisted calls, newest first.
    Optional query params: county, limit (default 50).
    """
    try:
        query = {}
        county = request.args.get("county")
        if county:
            query["county"] = county
        limit = request.args.get("limit", default=50, type=int)
        calls = db.calls_collection.find(query).sort("createdAt", -1).limit(limit)
        return jsonify([db.serialize_call(c) for c in calls])
    except Exception as e:
        return jsonify({"error": str(e)}), 500


@calls_bp.route("/<call_id>", methods=["GET"])
def get_call(call_id: str):
    """Fetch a single call by CallSid, falling back to the Mongo ObjectId."""
    try:
        call = db.calls_collection.find_one({"id": call_id})
        if not call:
            try:
                call = db.calls_collection.find_one({"_id": ObjectId(call_id)})
            except InvalidId:
                call = None
        if not call:
            return jsonify({"error": "Call not found"}), 404
        return jsonify(db.serialize_call(call))
    except Exception as e:
        return jsonify({"error": str(e)}), 500
