"""
Product Recommendation API Service

Flask web service for serving product recommendations.
Endpoint: GET /recommend/<strategy>/<user_id>?n=5
Strategies: user, item, content, hybrid
Returns: JSON list of recommended products

Enhanced with:
- Request validation
- Malformed request handling
- Request logging
"""

import os
import time
import uuid
import logging
from datetime import datetime
from functools import wraps
from typing import Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from .. import config
from ..engine import RecommendationEngine
from ..exceptions import EngineNotLoadedError, InvalidConfigurationError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

# Separate logger for malformed requests
malformed_logger = logging.getLogger('malformed_requests')
malformed_logger.setLevel(logging.WARNING)

app = Flask(__name__)

STRATEGIES = ('user', 'item', 'content', 'hybrid')


class RequestValidator:
    """
    Validates API requests for correct format and content.
    """

    MIN_RECOMMENDATIONS = 1
    MAX_RECOMMENDATIONS = config.SERVING_CONFIG['max_recommendations']

    @staticmethod
    def validate_user_id(user_id: str) -> Tuple[bool, Optional[str], Optional[int]]:
        """
        Validate user_id format - must be a positive integer.

        Returns:
            Tuple of (is_valid, error_message, parsed_user_id)
        """
        if not user_id:
            return False, "user_id is required and cannot be empty", None

        try:
            user_id_int = int(user_id)
        except ValueError:
            return False, f"user_id must be a positive integer, got '{user_id}'", None

        if user_id_int <= 0:
            return False, f"user_id must be a positive integer (greater than 0), got {user_id_int}", None

        return True, None, user_id_int

    @staticmethod
    def validate_n_recommendations(n) -> Tuple[bool, Optional[str], Optional[int]]:
        """
        Validate n parameter - positive integer up to MAX_RECOMMENDATIONS.

        Returns:
            Tuple of (is_valid, error_message, parsed_value)
        """
        if n is None:
            return True, None, config.SERVING_CONFIG['default_recommendations']

        try:
            n_int = int(n)
        except (ValueError, TypeError):
            return False, f"n must be a positive integer, got '{n}'", None

        if n_int < RequestValidator.MIN_RECOMMENDATIONS:
            return False, f"n must be at least {RequestValidator.MIN_RECOMMENDATIONS}, got {n_int}", None

        if n_int > RequestValidator.MAX_RECOMMENDATIONS:
            return False, f"n cannot exceed {RequestValidator.MAX_RECOMMENDATIONS}, got {n_int}", None

        return True, None, n_int

    @staticmethod
    def validate_strategy(strategy: str) -> Tuple[bool, Optional[str]]:
        if strategy not in STRATEGIES:
            return False, f"strategy must be one of {', '.join(STRATEGIES)}, got '{strategy}'"
        return True, None


def log_malformed_request(error_type: str, details: Dict) -> None:
    """Log malformed request with request metadata."""
    log_entry = {
        'timestamp': datetime.now().isoformat(),
        'error_type': error_type,
        'ip': request.remote_addr,
        'path': request.path,
        'method': request.method,
        'details': details
    }
    malformed_logger.warning(f"{error_type}: {log_entry}")


def validate_request(f):
    """
    Decorator to validate strategy, user_id and n before calling the view.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        strategy = kwargs.get('strategy')
        is_valid, error_msg = RequestValidator.validate_strategy(strategy)
        if not is_valid:
            log_malformed_request('INVALID_STRATEGY', {'strategy': strategy, 'error': error_msg})
            return jsonify({'error': 'Invalid request', 'message': error_msg}), 400

        user_id = kwargs.get('user_id')
        is_valid, error_msg, parsed_user_id = RequestValidator.validate_user_id(user_id)
        if not is_valid:
            log_malformed_request('INVALID_USER_ID', {'user_id': user_id, 'error': error_msg})
            return jsonify({
                'error': 'Invalid request',
                'message': error_msg,
                'user_id': user_id
            }), 400
        kwargs['user_id'] = parsed_user_id

        n = request.args.get('n', None)
        is_valid, error_msg, parsed_n = RequestValidator.validate_n_recommendations(n)
        if not is_valid:
            log_malformed_request('INVALID_PARAMETER', {'parameter': 'n', 'value': n, 'error': error_msg})
            return jsonify({
                'error': 'Invalid request',
                'message': error_msg,
                'parameter': 'n'
            }), 400
        kwargs['n_recommendations'] = parsed_n

        unexpected_params = set(request.args.keys()) - {'n'}
        if unexpected_params:
            logger.warning(f"Unexpected parameters in request: {unexpected_params}")

        return f(*args, **kwargs)

    return decorated_function


class RecommenderService:
    """
    Wrapper service around a RecommendationEngine.
    Handles engine loading and response shaping.
    """

    def __init__(self, engine: Optional[RecommendationEngine] = None):
        self.engine = engine

    def load_engine(self, data_dir=None) -> None:
        """
        Load the engine from data files, or the sample data if they are absent.
        """
        data_dir = data_dir or config.DATA_DIR
        ratings_path = os.path.join(data_dir, config.RATINGS_PATH.name)
        catalog_path = os.path.join(data_dir, config.CATALOG_PATH.name)
        profiles_path = os.path.join(data_dir, config.PROFILES_PATH.name)

        if all(os.path.exists(p) for p in (ratings_path, catalog_path, profiles_path)):
            self.engine = RecommendationEngine.from_files(ratings_path, catalog_path, profiles_path)
            logger.info(f"Engine loaded from {data_dir}")
        else:
            self.engine = RecommendationEngine.from_sample_data()
            logger.info("Data files not found, engine loaded with sample data")

    def get_recommendations(self, strategy: str, user_id: int, n_recommendations: int) -> List[Dict]:
        """
        Recommendations for one user and strategy, as JSON-ready dicts.

        Raises:
            EngineNotLoadedError: If no engine is loaded
        """
        if self.engine is None:
            raise EngineNotLoadedError("Engine not loaded. Call load_engine() first.")

        if strategy == 'hybrid':
            entries = [
                {'item_id': rec.item_id, 'score': rec.score, 'source': rec.source}
                for rec in self.engine.hybrid(user_id, n_recommendations)
            ]
        elif strategy == 'content':
            entries = [
                {'item_id': rec.item_id, 'score': rec.score}
                for rec in self.engine.content_based_recommender.score_products(user_id, n_recommendations)
            ]
        elif strategy == 'user':
            entries = [{'item_id': rec.item_id, 'score': rec.score}
                       for rec in self.engine.user_based(user_id, n_recommendations)]
        else:
            entries = [{'item_id': rec.item_id, 'score': rec.score}
                       for rec in self.engine.item_based(user_id, n_recommendations)]

        for entry in entries:
            product = self.engine.product(entry['item_id'])
            entry['name'] = product.name if product else None
        return entries


# Global service instance
recommender = None


def initialize_service(data_dir=None) -> None:
    """Initialize the recommender service on startup."""
    global recommender

    recommender = RecommenderService()
    recommender.load_engine(data_dir)
    logger.info("Recommender service initialized")


@app.errorhandler(404)
def not_found(error):
    log_malformed_request('ENDPOINT_NOT_FOUND', {'path': request.path, 'method': request.method})
    return jsonify({
        'error': 'Not Found',
        'message': 'The requested endpoint does not exist',
        'available_endpoints': ['/health', '/recommend/<strategy>/<user_id>', '/']
    }), 404


@app.errorhandler(405)
def method_not_allowed(error):
    return jsonify({
        'error': 'Method Not Allowed',
        'message': f'The {request.method} method is not allowed for this endpoint'
    }), 405


@app.before_request
def log_request():
    logger.info(f"Request: {request.method} {request.path} from {request.remote_addr}")


@app.route('/health', methods=['GET'])
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON with service status and engine counts
    """
    engine = getattr(recommender, 'engine', None) if recommender else None
    return jsonify({
        'status': 'healthy',
        'engine_loaded': engine is not None,
        'engine': engine.describe() if engine is not None else {},
        'timestamp': datetime.now().isoformat()
    })


@app.route('/recommend/<strategy>/<user_id>', methods=['GET'])
@validate_request
def recommend_products(strategy, user_id, n_recommendations=5):
    """
    Get product recommendations for a user.

    Query Parameters:
        n: Number of recommendations to return (1-100, default: 5)

    Example:
        GET /recommend/hybrid/1?n=4
        Response: {"strategy": "hybrid", "user_id": 1, "recommendations": [...]}

    Error Responses:
        400: Invalid strategy, user_id or parameters
        503: Engine not loaded
        500: Server error
    """
    start_time = time.time()

    try:
        if not recommender:
            logger.warning("Recommender not initialized, initializing now")
            initialize_service()

        recommendations = recommender.get_recommendations(strategy, user_id, n_recommendations)
        response_time = time.time() - start_time

        logger.info(
            f"SUCCESS - strategy={strategy}, user={user_id}, n_requested={n_recommendations}, "
            f"n_returned={len(recommendations)}, response_time={response_time:.3f}s"
        )

        return jsonify({
            'request_id': str(uuid.uuid4()),
            'strategy': strategy,
            'user_id': user_id,
            'recommendations': recommendations
        })

    except InvalidConfigurationError as e:
        log_malformed_request('ENGINE_VALIDATION_ERROR', {'user_id': user_id, 'error': str(e)})
        return jsonify({'error': 'Invalid request', 'message': str(e)}), 400

    except EngineNotLoadedError as e:
        logger.error(f"Engine not loaded in recommend endpoint: {e}")
        return jsonify({'error': 'Service error', 'message': 'Engine not available'}), 503

    except Exception as e:
        logger.error(f"Unexpected error in recommend endpoint: {e}", exc_info=True)
        return jsonify({
            'error': 'Internal error',
            'message': 'Error generating recommendations'
        }), 500


@app.route('/', methods=['GET'])
def root():
    """Service information."""
    return jsonify({
        'service': 'Product Recommendation API',
        'version': '1.0',
        'endpoints': {
            'health': {
                'path': '/health',
                'method': 'GET',
                'description': 'Check service health'
            },
            'recommend': {
                'path': '/recommend/<strategy>/<user_id>',
                'method': 'GET',
                'description': 'Get product recommendations',
                'parameters': {
                    'strategy': f"Required path parameter ({', '.join(STRATEGIES)})",
                    'user_id': 'Required path parameter (positive integer)',
                    'n': 'Optional query parameter (positive integer, 1-100, default: 5)'
                },
                'example': '/recommend/hybrid/1?n=4'
            }
        },
        'timestamp': datetime.now().isoformat()
    })


if __name__ == '__main__':
    try:
        initialize_service()
    except Exception as e:
        logger.error(f"Failed to initialize service: {e}")
        logger.warning("Service starting without engine - recommendations will fail")

    host = config.SERVING_CONFIG['host']
    port = config.SERVING_CONFIG['port']
    debug = config.SERVING_CONFIG['debug']

    logger.info(f"Starting Flask server on {host}:{port}")
    app.run(host=host, port=port, debug=debug)
