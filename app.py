#!/usr/bin/env python3
"""
Accommodation Finder API runner
"""
import os
from accommodation import create_app, db
from accommodation.models import User, Property, Visit, Booking, ExpertConsultation

app = create_app()

@app.shell_context_processor
def make_shell_context():
    return {
        'db': db,
        'User': User,
        'Property': Property,
        'Visit': Visit,
        'Booking': Booking,
        'ExpertConsultation': ExpertConsultation
    }

if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV') == 'development'
    app.run(host='0.0.0.0', port=port, debug=debug)
