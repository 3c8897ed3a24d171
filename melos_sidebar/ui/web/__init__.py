"""Web API — Flask app factory and blueprints."""
