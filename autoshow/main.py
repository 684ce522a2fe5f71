"""
HTTP entrypoint for the show-note pipeline.

``POST /process`` takes a JSON body with a ``filePath`` pointing at a local
media file plus any request options understood by
:func:`autoshow.options.resolve` (``llm``, ``llmModel``,
``transcriptService``, ``whisperModel``, ``speakerLabels``, ``prompt``,
``noCleanUp``...).  An optional ``destination`` overrides where the finished
document is written, including ``gs://`` URIs.

Required executables are checked once when the server starts.
"""

import json
import logging
import os

from flask import Flask, jsonify, request

from . import tasks
from .config import Settings
from .dependencies import check_dependencies
from .dispatch import build_llm_dispatcher, build_transcription_dispatcher
from .errors import AutoshowError, ConfigurationError

logger = logging.getLogger(__name__)

app = Flask(__name__)

settings = Settings.from_env()
transcription_dispatcher = build_transcription_dispatcher(settings)
llm_dispatcher = build_llm_dispatcher(settings)


@app.route("/healthz", methods=["GET"])
def healthz():
    return "OK", 200


@app.route("/process", methods=["POST"])
def process():
    data = request.get_json(silent=True) or {}
    file_path = data.get("filePath")
    logger.info(json.dumps({"event": "request", "file": file_path, "llm": data.get("llm")}))
    if not file_path:
        return jsonify({"error": "Missing 'filePath' in request"}), 400
    try:
        destination = tasks.process_file(
            file_path,
            data,
            settings=settings,
            transcription=transcription_dispatcher,
            llm=llm_dispatcher,
            destination=data.get("destination"),
        )
    except ConfigurationError as exc:
        logger.info(json.dumps({"event": "invalid_request", "error": str(exc)}))
        return jsonify({"error": str(exc)}), 400
    except AutoshowError as exc:
        logger.exception("Error processing %s", file_path)
        return jsonify({"error": str(exc), "backend": getattr(exc, "backend", None)}), 500
    except Exception as exc:
        logger.exception("Unexpected error processing %s", file_path)
        return jsonify({"error": f"Server error: {exc}"}), 500
    logger.info(json.dumps({"event": "document_saved", "path": destination}))
    return jsonify({"destination": destination}), 200


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    check_dependencies(settings.required_dependencies)
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
