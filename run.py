import atexit
import socket
import threading
import time
import webbrowser

from kilocam import create_app
from kilocam.config import config
from kilocam.web.routes import cleanup_resources, device_client

app = create_app()


def find_free_port(host, start_port, attempts=20):
    """First port at or above start_port that can be bound on host."""
    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind((host, port))
                return port
            except OSError:
                print(f"[Startup] Port {port} is busy.")
    raise RuntimeError(f"No free port in {start_port}-{start_port + attempts - 1}")


if __name__ == "__main__":
    host = config.server.host
    port = find_free_port(host, config.server.port)

    atexit.register(cleanup_resources)

    def open_browser():
        time.sleep(1)
        webbrowser.open(f"http://{host}:{port}")

    threading.Thread(target=open_browser, daemon=True).start()

    print(f"[Startup] Camera at {device_client.base_url}")
    if not device_client.is_available():
        print("[Startup] Camera not reachable yet. Join its Wi-Fi network and refresh the page.")

    print(f"[Startup] Starting panel on {host}:{port}")
    app.run(host=host, port=port, debug=False, threaded=True)
