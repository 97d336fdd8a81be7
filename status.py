import logging
import threading
from collections import deque
from datetime import datetime
from flask import Flask, jsonify, render_template

MAX_LINES = 200 # Status lines kept for the status page

class StatusLog:
    # Receives human readable progress strings from the game. Nothing in the game reads them back.
    def __init__(self, max_lines=MAX_LINES):
        self.lines = deque(maxlen=max_lines)
        self.lock = threading.Lock()

    def log(self, message):
        logging.info(message)
        self.lock.acquire()
        try:
            self.lines.append({
                'date': datetime.today().strftime('%Y-%m-%d %H:%M:%S'),
                'message': message
            })
        finally:
            self.lock.release()

    def recent(self):
        # Newest line first
        self.lock.acquire()
        try:
            return list(reversed(self.lines))
        finally:
            self.lock.release()

def create_app(status, coordinator):
    app = Flask(__name__)

    # Main status page
    @app.route('/')
    def index():
        state = coordinator.snapshot()
        return render_template('status.html', state=state, board=state['board_display'], lines=status.recent())

    # Same data for scripts
    @app.route('/status')
    def status_json():
        state = coordinator.snapshot()
        state['lines'] = status.recent()
        return jsonify(state)

    return app

def start_status_page(app, host, port):
    # Run Flask app in separate thread, it dies with the game
    def run_flask():
        app.run(debug=False, host=host, port=port, use_reloader=False)

    flask_thread = threading.Thread(target=run_flask, daemon=True)
    flask_thread.start()
    return flask_thread
