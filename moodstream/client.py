#!/usr/bin/env python3
"""
Synthetic Client - exercises a running server without a microphone.

Generates synthetic audio chunks (silence, a pure tone, white noise) and
sends them to the /ws/audio endpoint, printing the mood and features that
come back for each chunk.
"""
import argparse
import asyncio
import json
import sys
import numpy as np
import websockets

# Audio configuration (must match server settings)
SAMPLE_RATE = 44100  # Hz
CHUNK_SIZE = 735  # samples per chunk, one 60 Hz frame at 44.1 kHz

SERVER_URL = "ws://localhost:8000/ws/audio"

PAUSE_MS = 16  # ms between chunks
RECV_TIMEOUT = 0.5  # seconds to wait for each reply


def generate_silence_chunk(chunk_size, offset=0):
    """Generate a chunk of silence."""
    return np.zeros(chunk_size, dtype=np.int16)


def generate_tone_chunk(chunk_size, offset=0, frequency=440.0, amplitude=12000):
    """Generate a chunk of a continuous sine tone starting at sample offset."""
    t = (np.arange(chunk_size) + offset) / SAMPLE_RATE
    return (np.sin(2 * np.pi * frequency * t) * amplitude).astype(np.int16)


def generate_noise_chunk(chunk_size, offset=0, amplitude=12000):
    """Generate a chunk of white noise."""
    return np.random.randint(-amplitude, amplitude, chunk_size, dtype=np.int16)


SEGMENTS = [
    ("Silence", generate_silence_chunk),
    ("Tone", generate_tone_chunk),
    ("Noise", generate_noise_chunk),
]


async def stream_segments(websocket, frames_per_segment, recv_timeout=RECV_TIMEOUT, pause_ms=PAUSE_MS):
    """
    Send every synthetic segment and pair each chunk with its reply.

    The server answers chunks in order, one reply each. A chunk whose reply
    does not arrive within recv_timeout is recorded with a None payload, and
    its reply is discarded when it turns up later.

    Returns:
        List of (frame number, segment label, payload or None)
    """
    rows = []
    late = 0
    frame_count = 0
    for label, generator in SEGMENTS:
        for i in range(frames_per_segment):
            chunk = generator(CHUNK_SIZE, offset=i * CHUNK_SIZE)
            await websocket.send(chunk.astype("<i2").tobytes())
            frame_count += 1

            data = None
            try:
                while True:
                    message = await asyncio.wait_for(websocket.recv(), timeout=recv_timeout)
                    if late == 0:
                        data = json.loads(message)
                        break
                    late -= 1
            except asyncio.TimeoutError:
                late += 1

            rows.append((frame_count, label, data))
            if data is None:
                print(f"{frame_count:7d}  | {label:9s} | (no result)")
            else:
                print(
                    f"{frame_count:7d}  | {label:9s} | {data['mood']:12s} | "
                    f"{data['features']['energy']:6.2f} | {data['dominantFrequency']:10.1f}"
                )
            await asyncio.sleep(pause_ms / 1000.0)
        print()
    return rows


async def run_client(url, frames_per_segment, sensitivity=None):
    """Send each synthetic segment and print the analysis results."""
    print("=" * 70)
    print("Moodstream - Synthetic Client")
    print("=" * 70)
    print(f"Server: {url}")
    print(f"Chunk Size: {CHUNK_SIZE} samples @ {SAMPLE_RATE} Hz")
    print("=" * 70 + "\n")

    async with websockets.connect(url, ping_interval=None) as websocket:
        if sensitivity is not None:
            await websocket.send(str(sensitivity))

        print("Frame #  | Segment   | Mood         | Energy | Dominant Hz")
        print("-" * 60)
        rows = await stream_segments(websocket, frames_per_segment)

    moods = {}
    missing = 0
    for _, label, data in rows:
        if data is None:
            missing += 1
            continue
        moods.setdefault(label, []).append(data["mood"])

    print("=" * 70)
    print("RESULTS")
    print("=" * 70)
    for label, seen in moods.items():
        print(f"{label:9s}: final mood {seen[-1]}, {len(set(seen))} distinct")
    print(f"Missing results: {missing}/{len(rows)}")
    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(description="Send synthetic audio to a Moodstream server")
    parser.add_argument("--url", default=SERVER_URL)
    parser.add_argument("--frames", type=int, default=60, help="chunks per segment")
    parser.add_argument("--sensitivity", type=float, default=None)
    args = parser.parse_args()

    try:
        asyncio.run(run_client(args.url, args.frames, args.sensitivity))
    except ConnectionRefusedError:
        print("\n✗ ERROR: Could not connect to server at", args.url)
        print("  Make sure the server is running:")
        print("    uvicorn moodstream.main:app")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nExiting...")


if __name__ == "__main__":
    main()
