#!/usr/bin/env python3
"""
Image Manipulator API Server
Upload an image, name the transforms, get the result back.
"""

import os
import logging
import uuid
import base64
from io import BytesIO
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.utils import secure_filename
from PIL import Image as PILImage

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

# Import services and models
from models.errors import InvalidAdjustmentError, ResourceUnavailableError, UnknownTransformError
from models.raster import Raster
from pipeline.apply_transforms import TRANSFORM_NAMES, apply_transforms, validate_steps
from repositories.raster_repository import RasterRepository
from services.overlay_service import OverlayService
from services.raster_service import RasterService

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
RESULTS_FOLDER = os.getenv("RESULTS_FOLDER", "data/api_results")
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif,bmp,webp,tif,tiff").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "50")) * 1024 * 1024

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
raster_service = RasterService()
default_overlay_service = OverlayService()

logger = logging.getLogger(__name__)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def is_truthy(value) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes')


def mimetype_for(fmt: str) -> str:
    return PILImage.MIME.get(RasterRepository.resolve_format(fmt=fmt), 'application/octet-stream')


def raster_to_base64(raster: Raster, fmt: str = "png") -> str:
    """Encode a Raster as a data URL for JSON responses."""
    data = raster_service.encode(raster, fmt)
    base64_string = base64.b64encode(data).decode('utf-8')
    return f"data:{mimetype_for(fmt)};base64,{base64_string}"


def save_raster_for_serving(raster: Raster, fmt: str = "png") -> str:
    """Save raster to results folder and return URL path."""
    results_dir = Path(RESULTS_FOLDER)
    results_dir.mkdir(parents=True, exist_ok=True)
    filename = f"result_{uuid.uuid4().hex}.{fmt.lower().lstrip('.')}"
    raster_service.save(raster, results_dir / filename, fmt)
    return f"/api/image/{filename}"


def overlay_service_for_request() -> OverlayService:
    """Uploaded halo / grain files win over the configured defaults."""
    halo = request.files.get('halo')
    grain = request.files.get('grain')
    if halo is None and grain is None:
        return default_overlay_service
    return OverlayService(
        halo_source=halo.read() if halo is not None else default_overlay_service.halo_source,
        grain_source=grain.read() if grain is not None else default_overlay_service.grain_source,
    )


@app.route('/api/transforms', methods=['GET'])
def list_transforms():
    """List the available transform names."""
    return jsonify({
        'transforms': list(TRANSFORM_NAMES),
        'parametric': {'hue': [0, 360], 'saturation': [0, 1], 'lightness': [0, 1]},
        'overlays_configured': default_overlay_service.is_configured,
    })


@app.route('/api/transform', methods=['POST'])
def transform():
    """Apply the comma separated `steps` to the uploaded `image`."""
    if 'image' not in request.files:
        return jsonify({'success': False, 'message': 'No image provided'}), 400

    file = request.files['image']
    if file.filename == '':
        return jsonify({'success': False, 'message': 'No file selected'}), 400
    if not allowed_file(file.filename):
        return jsonify({'success': False, 'message': f'Unsupported file type: {file.filename}'}), 400

    steps = [s for s in request.form.get('steps', '').split(',') if s.strip()]
    if not steps:
        return jsonify({'success': False, 'message': 'No steps provided'}), 400
    fmt = request.form.get('format', 'png')

    try:
        steps = validate_steps(steps)
        RasterRepository.resolve_format(fmt=fmt)
    except UnknownTransformError as e:
        return jsonify({'success': False, 'message': str(e)}), 400
    except ValueError as e:
        # InvalidAdjustmentError is a ValueError too
        status = 422 if isinstance(e, InvalidAdjustmentError) else 400
        return jsonify({'success': False, 'message': str(e)}), status

    try:
        raster = raster_service.load(file.read())
    except ValueError as e:
        return jsonify({'success': False, 'message': f'Could not decode {secure_filename(file.filename)}: {e}'}), 400

    try:
        apply_transforms(raster, steps,
                         raster_service=raster_service,
                         overlay_service=overlay_service_for_request())
    except ResourceUnavailableError as e:
        logger.error(f"Overlay error: {e}")
        return jsonify({'success': False, 'message': str(e)}), 422

    logger.info(f"Transformed {file.filename} with {', '.join(map(str, steps))}")

    if is_truthy(request.args.get('download')):
        return send_file(BytesIO(raster_service.encode(raster, fmt)),
                         mimetype=mimetype_for(fmt),
                         download_name=f"{Path(secure_filename(file.filename)).stem}.{fmt.lower()}")

    response = {
        'success': True,
        'width': raster.width,
        'height': raster.height,
        'steps': [str(s) for s in steps],
        'image': raster_to_base64(raster, fmt),
    }
    if is_truthy(request.form.get('save')):
        response['url'] = save_raster_for_serving(raster, fmt)
    return jsonify(response)


@app.route('/api/image/<filename>')
def serve_image(filename):
    """Serve a previously saved result."""
    image_path = Path(RESULTS_FOLDER) / secure_filename(filename)
    if not image_path.exists():
        return jsonify({'error': 'Image not found'}), 404
    return send_file(image_path.resolve(), mimetype=mimetype_for(image_path.suffix))


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Image Manipulator API is running',
    })


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({'error': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.'}), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'error': 'Internal server error'}), 500


if __name__ == '__main__':
    logger.info(f"Starting Image Manipulator API, results in {RESULTS_FOLDER}, "
                f"max upload {MAX_CONTENT_LENGTH // (1024 * 1024)}MB")
    app.run(host=os.getenv("API_HOST", "127.0.0.1"),
            port=int(os.getenv("API_PORT", "5000")),
            debug=False)
