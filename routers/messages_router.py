"""
Messages Router - contact form inbox
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from crud.message import MessageRepository
from database import get_db
from models.messages import MessageCreate, MessageOut, MessageRead, MessageReadV1, MessagesQuery
from utils.responses import data_response, page_response, serialize, serialize_many
from utils.validation import NotFound, ValidationFailed, parse_body, parse_id, parse_query, read_json_body

logger = logging.getLogger(__name__)

messages_router = APIRouter(prefix="/api/v2/messages", tags=["messages"])
messages_v1_router = APIRouter(prefix="/api/v1/messages", tags=["messages-v1"])


async def _load(repo: MessageRepository, raw_id: str):
    message = await repo.get_message_by_id(parse_id(raw_id, "Message"))
    if message is None:
        raise NotFound("Message")
    return message


async def _list(request: Request, db: AsyncSession):
    params = parse_query(MessagesQuery, request)
    rows, meta = await MessageRepository(db).list_messages(params)
    return page_response(serialize_many(MessageOut, rows), meta)


@messages_router.get("")
async def list_messages(request: Request, db: AsyncSession = Depends(get_db)):
    return await _list(request, db)


@messages_router.post("")
async def create_message(request: Request, db: AsyncSession = Depends(get_db)):
    """Store a contact form submission"""
    data = await parse_body(MessageCreate, request, "Invalid message payload")
    message = await MessageRepository(db).create_message(
        data,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    logger.info(f"New contact message {message.id} from {message.email}")
    return data_response(serialize(MessageOut, message), status=201)


@messages_router.get("/{message_id}")
async def get_message(message_id: str, db: AsyncSession = Depends(get_db)):
    message = await _load(MessageRepository(db), message_id)
    return data_response(serialize(MessageOut, message))


@messages_router.patch("/{message_id}/read")
async def mark_message_read(message_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    repo = MessageRepository(db)
    body = await parse_body(MessageRead, request)
    message = await _load(repo, message_id)
    message = await repo.mark_read(message, body.read)
    return data_response(serialize(MessageOut, message))


@messages_router.patch("/{message_id}/archive")
async def archive_message(message_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    repo = MessageRepository(db)
    message_pk = parse_id(message_id, "Message")
    body = await read_json_body(request)
    archived = body.get("archived") if isinstance(body, dict) else None
    if not isinstance(archived, bool):
        raise ValidationFailed("Body must include `archived` boolean")

    message = await repo.get_message_by_id(message_pk)
    if message is None:
        raise NotFound("Message")
    message = await repo.archive(message, archived)
    return data_response(serialize(MessageOut, message))


@messages_v1_router.get("")
async def list_messages_v1(request: Request, db: AsyncSession = Depends(get_db)):
    return await _list(request, db)


@messages_v1_router.get("/{message_id}")
async def get_message_v1(message_id: str, db: AsyncSession = Depends(get_db)):
    message = await _load(MessageRepository(db), message_id)
    return data_response(serialize(MessageOut, message))


@messages_v1_router.patch("/{message_id}/read")
async def mark_message_read_v1(message_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    repo = MessageRepository(db)
    body = await parse_body(MessageReadV1, request)
    message = await _load(repo, message_id)
    message = await repo.mark_read(message, body.read)
    return data_response(serialize(MessageOut, message))
