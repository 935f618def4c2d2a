#!/usr/bin/env python3
"""
Run a local shipping demo.

Demonstrates:
1. Chunking records into requests
2. Grouping requests onto connections
3. Fire-and-forget delivery with per-record results

A minimal collector is started in-process so no Fluentd instance is needed.
"""

import argparse
import json
import sys
import threading
from datetime import datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shipper.cli import setup_logging
from shipper.config import ShipperConfig, set_config
from shipper.core.emitter import Emitter


class CollectorHandler(BaseHTTPRequestHandler):
    """Accepts POST /<tag> requests the way Fluentd's in_http does."""

    protocol_version = "HTTP/1.1"
    received = []
    connections = set()

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length)
        self.received.append({
            "path": self.path,
            "records": json.loads(body) if body else None,
            "connection": self.headers.get("Connection"),
        })
        self.connections.add(self.client_address)

        self.send_response(200)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


def main():
    parser = argparse.ArgumentParser(description="Ship records to an in-process collector")
    parser.add_argument("--records", type=int, default=25, help="Number of records to emit")
    parser.add_argument("--batch-size", type=int, default=4)
    parser.add_argument("--batches-per-connection", type=int, default=3)
    parser.add_argument("--output", help="Write a JSON summary to this file")
    args = parser.parse_args()

    setup_logging("DEBUG")

    CollectorHandler.received = []
    CollectorHandler.connections = set()
    server = ThreadingHTTPServer(("127.0.0.1", 0), CollectorHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    config = ShipperConfig(
        host="127.0.0.1",
        port=server.server_address[1],
        batch_size=args.batch_size,
        batches_per_connection=args.batches_per_connection,
        connection_timeout=5.0,
    )
    set_config(config)

    print("\n" + "=" * 70)
    print("FLUENT SHIPPER - LOCAL DEMO")
    print("=" * 70)
    print(f"Collector: {config.address}")
    print(f"Records: {args.records}, batch size: {args.batch_size}, "
          f"batches per connection: {args.batches_per_connection}\n")

    records = {
        f"req-{i:03d}": {"event": "request", "path": f"/items/{i}", "status": 200}
        for i in range(args.records)
    }

    emitter = Emitter(config=config)
    results = emitter.emit_batch("demo.access", records, int(datetime.now().timestamp()))

    server.shutdown()
    server.server_close()

    delivered = sum(1 for ok in results.values() if ok)
    print(f"\nDelivered {delivered} of {len(results)} record(s)")
    print(f"Requests received by collector: {len(CollectorHandler.received)}")
    print(f"Connections used: {len(CollectorHandler.connections)}")

    if args.output:
        summary = {
            "timestamp": datetime.now().isoformat(),
            "collector": config.address,
            "results": results,
            "requests": CollectorHandler.received,
        }
        Path(args.output).write_text(json.dumps(summary, indent=2))
        print(f"Summary written to {args.output}")

    return 0 if delivered == len(results) else 1


if __name__ == "__main__":
    sys.exit(main())
