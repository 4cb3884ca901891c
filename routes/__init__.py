from .health import health_bp
from .auth import auth_bp
from .slots import slots_bp
from .interviews import interviews_bp
from .audit_logs import audit_bp
