"""WebSocket endpoints for result streaming and client-side audio analysis."""
import asyncio
import uuid
from fastapi import WebSocket, WebSocketDisconnect
from moodstream.audio.capture import PcmStreamSource
from moodstream.audio.ingestion import validate_audio_data
from moodstream.services.capture_service import CaptureService
from moodstream.services.result_buffer import ResultBuffer
from moodstream.services.session import AnalysisSession
from moodstream.core.logging import logger


async def websocket_analysis_endpoint(websocket: WebSocket, service: CaptureService) -> None:
    """
    WebSocket endpoint handler for /ws/analysis.

    Streams every result published by the server's microphone session as
    JSON, in frame order. Incoming messages are ignored; the connection
    stays open until the client disconnects.
    """
    await websocket.accept()

    consumer_id = f"ws-{uuid.uuid4().hex[:8]}"
    session = service.session
    buffer = ResultBuffer(consumer_id)
    unsubscribe = session.subscribe(buffer)
    logger.info(f"New analysis subscriber: {consumer_id}")

    async def forward_results() -> None:
        while True:
            result = await buffer.get_result()
            await websocket.send_json(result.to_dict())

    sender = asyncio.create_task(forward_results())
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
        logger.info(f"WebSocket disconnected for subscriber {consumer_id}")
    except Exception as e:
        logger.error(f"Error streaming results to {consumer_id}: {e}")
    finally:
        unsubscribe()
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Result sender for {consumer_id} ended: {e}")
        logger.info(f"Cleaned up subscriber {consumer_id} (dropped {buffer.dropped} results)")


async def process_stream(stream_id: str, websocket: WebSocket) -> None:
    """
    Analyse audio pushed by the client: receive PCM, tick, send results.

    Each received chunk is one frame; the JSON result for it is sent back
    before the next chunk is read.

    Args:
        stream_id: Unique identifier for this stream
        websocket: WebSocket connection
    """
    source = PcmStreamSource()
    session = AnalysisSession(source)
    buffer = ResultBuffer(stream_id)
    session.subscribe(buffer)

    success, detail = session.start()
    if not success:
        await websocket.send_json({"error": detail})
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            if message.get("text") is not None:
                try:
                    session.set_sensitivity(float(message["text"]))
                except ValueError:
                    logger.warning(f"Ignoring invalid sensitivity {message['text']!r} from stream {stream_id}")
                continue

            data = message.get("bytes")
            if data is None or not validate_audio_data(data):
                logger.warning(f"Invalid audio data from stream {stream_id}")
                continue

            source.push_pcm(data)
            session.tick()

            for result in buffer.drain():
                await websocket.send_json(result.to_dict())

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for stream {stream_id}")
    finally:
        session.stop()
        session.publisher.clear()
        logger.info(f"Cleaned up stream {stream_id} after {session.frames_published} frames")


async def websocket_audio_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint handler for /ws/audio.

    Accepts binary PCM int16 mono chunks at the configured sample rate and
    replies with one JSON analysis result per chunk. A text message holding
    a number sets this stream's sensitivity.
    """
    await websocket.accept()

    stream_id = f"ws-{uuid.uuid4().hex[:8]}"
    logger.info(f"New WebSocket connection: {stream_id}")

    try:
        await process_stream(stream_id, websocket)
    except Exception as e:
        logger.error(f"WebSocket error for {stream_id}: {e}")
    finally:
        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Close after disconnect for {stream_id}: {e}")
