import socket
import logging
import threading
import ssl

import config
from board import SYMBOLS
from coordinator import GameCoordinator
from session import PlayerSession
from status import StatusLog, create_app, start_status_page

class TicTacToeServer:
    def __init__(self, host=config.HOST, port=config.PORT, status=None, coordinator=None,
                 backlog=config.BACKLOG, certfile=config.CERTFILE, keyfile=config.KEYFILE):
        self.status = status if status is not None else StatusLog()
        self.coordinator = coordinator if coordinator is not None else GameCoordinator()
        # Secure TCP connection with TLS when server's cert and key are given
        self.context = None
        if certfile and keyfile:
            self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
            self.context.load_cert_chain(certfile=certfile, keyfile=keyfile)
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.server_socket.bind((host, port))
        self.server_socket.listen(backlog)
        self.address = self.server_socket.getsockname()
        self.threads = []
        self.status.log(f"Server is waiting for connections on port {self.address[1]}")

    def accept_players(self):
        # Accept exactly two players, X first, then O. Each one is served by its own thread.
        try:
            for number in range(len(SYMBOLS)):
                client_socket = self.accept_client(number)
                session = PlayerSession(client_socket, number, self.coordinator, self.status)
                self.coordinator.add_player(session)
                thread = threading.Thread(target=session.run, name=f"player-{SYMBOLS[number]}", daemon=True)
                self.threads.append(thread)
                thread.start()
        except OSError as e:
            logging.error(f"{e} error occurred while accepting players.")
            raise
        finally:
            # No more players are accepted
            self.server_socket.close()

        # Both players are found, player X can start
        self.coordinator.register_second_player()

    def accept_client(self, number):
        # A client failing the TLS handshake is dropped and the seat stays free
        while True:
            client_socket, addr = self.server_socket.accept()
            logging.info(f"Player {SYMBOLS[number]} connected from {addr}")
            if self.context is None:
                return client_socket
            try:
                return self.context.wrap_socket(client_socket, server_side=True)
            except OSError as e:
                logging.error(f"{e} error occurred. TLS handshake with {addr} failed.")
                client_socket.close()

    def wait(self, timeout=None):
        # Wait for both sessions to end
        for thread in self.threads:
            thread.join(timeout)

def main(config_path=config.CONFIG_FILE):
    settings = config.load_config(config_path)
    # Add logging into server.log file
    logging.basicConfig(filename=settings['log_file'], level=logging.INFO)
    server = TicTacToeServer(settings['host'], settings['port'], backlog=settings['backlog'],
                             certfile=settings['certfile'], keyfile=settings['keyfile'])
    if settings['status_enabled']:
        app = create_app(server.status, server.coordinator)
        start_status_page(app, settings['status_host'], settings['status_port'])
    server.accept_players()
    server.wait()
    server.status.log("Game finished, server is shutting down")

if __name__ == "__main__":
    main()
