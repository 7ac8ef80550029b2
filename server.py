"""
Web server exposing the similarity pipeline and citation graph operations.
Supports a browser frontend via CORS.
"""

import time
from typing import Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS

from citegraph.logging_config import Logger
from citegraph.validation_and_errors import ContractViolation, UpstreamFailure
from pipelines.pipeline_factory import PipelineFactory


logger = Logger(__name__)

DEFAULT_GENERATE_INSTRUCTION = "You are a helpful research assistant."


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ContractViolation("Request body must be a JSON object")
    return body


def _int_arg(value, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ContractViolation(f"{name} must be an integer")


def _not_found(what: str):
    return jsonify({"success": False, "error": f"{what} not found"}), 404


def create_app(factory: Optional[PipelineFactory] = None) -> Flask:
    """Build the Flask app; collaborators come from `factory`"""
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    factory = factory or PipelineFactory()
    services = {}

    def pipeline():
        if "pipeline" not in services:
            services["pipeline"] = factory.create_pipeline()
        return services["pipeline"]

    def citations():
        if "citations" not in services:
            services["citations"] = factory.citation_service()
        return services["citations"]

    @app.before_request
    def _before():
        g.req_start = time.time()

    @app.after_request
    def _after(response):
        dur = (time.time() - g.get("req_start", time.time())) * 1000
        logger.info(
            f"{response.status_code} {request.method} {request.path}",
            duration_ms=round(dur, 1),
        )
        return response

    @app.errorhandler(ContractViolation)
    def _contract_violation(e):
        return jsonify({"success": False, "error": str(e)}), 400

    @app.errorhandler(UpstreamFailure)
    def _upstream_failure(e):
        logger.error(f"Upstream failure: {e}")
        return jsonify({"success": False, "error": str(e), "service": e.service}), 502

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/embeddings/backfill", methods=["POST"])
    def backfill_embeddings():
        body = request.get_json(silent=True) or {}
        limit = _int_arg(body.get("limit"), "limit", 1000)
        count = pipeline().backfill_embeddings(limit)
        return jsonify({"success": True, "count": count})

    @app.route("/api/similar", methods=["GET"])
    def find_similar():
        title = request.args.get("title", "")
        if not title:
            raise ContractViolation("title is required")
        num = _int_arg(request.args.get("num"), "num", 10)
        results = pipeline().find_similar_entities(title, num)
        return jsonify({"success": True, "results": [r.to_dict() for r in results]})

    @app.route("/api/projects", methods=["POST"])
    def search_and_store():
        body = _json_body()
        keywords = body.get("keywords") or []
        if not isinstance(keywords, list):
            raise ContractViolation("keywords must be a list")
        result = pipeline().search_and_store(
            body.get("title", ""),
            keywords,
            body.get("uid", ""),
        )
        return jsonify({"success": True, **result.to_dict()}), 201

    @app.route("/api/users/<uid>/projects", methods=["GET"])
    def get_projects_by_user(uid):
        projects = citations().get_projects_by_user(uid)
        return jsonify({"success": True, "projects": [p.to_dict() for p in projects]})

    @app.route("/api/projects/<project_id>", methods=["GET"])
    def get_project_by_id(project_id):
        project = citations().get_project_by_id(project_id)
        if project is None:
            return _not_found("Project")
        return jsonify({"success": True, "project": project.to_dict()})

    @app.route("/api/users/<uid>/projects/<project_id>", methods=["DELETE"])
    def delete_project(uid, project_id):
        project = citations().delete_project(uid, project_id)
        if project is None:
            return _not_found("Project")
        return jsonify({"success": True, "project": project.to_dict()})

    @app.route("/api/users/<uid>/projects/<project_id>/citations/<citation_id>", methods=["DELETE"])
    def delete_citation(uid, project_id, citation_id):
        citation = citations().delete_citation(uid, project_id, citation_id)
        if citation is None:
            return _not_found("Citation")
        return jsonify({"success": True, "citation": citation.to_dict()})

    @app.route("/api/papers/most-relevant", methods=["GET"])
    def most_relevant_paper():
        query = request.args.get("query", "")
        if not query:
            raise ContractViolation("query is required")
        paper = factory.paper_search().get_most_relevant_paper(query)
        if paper is None:
            return _not_found("Paper")
        return jsonify({
            "success": True,
            "paper": {"id": paper.paper_id, "title": paper.title, "authors": paper.author_names},
        })

    @app.route("/api/generate-text", methods=["POST"])
    def generate_text():
        body = _json_body()
        prompt = body.get("prompt")
        if not isinstance(prompt, str) or not prompt:
            raise ContractViolation("prompt is required")
        instruction = body.get("instruction") or DEFAULT_GENERATE_INSTRUCTION
        try:
            temperature = float(body.get("temperature", 0.7))
        except (TypeError, ValueError):
            raise ContractViolation("temperature must be a number")
        text = factory.chat().complete(instruction, prompt, temperature=temperature)
        return jsonify({"success": True, "text": text})

    return app
