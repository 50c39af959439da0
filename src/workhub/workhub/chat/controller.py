from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import auth_guard, current_actor, int_list, json_body, json_error, query_int
from ..common.validators import require_enum, require_int
from ..container import Container
from ..core.enums import ChannelType


def register(app: Flask, container: Container) -> None:
    login_required = auth_guard(container.auth_service)
    chat = container.chat_service

    @app.route("/api/chat/channels", methods=["GET", "POST"], endpoint="api_chat_channels")
    @login_required
    def api_chat_channels():
        try:
            if request.method == "GET":
                return jsonify({"channels": list(chat.list_channels(current_actor()))}), 200

            data = json_body()
            channel = chat.create_channel(
                current_actor(),
                name=data.get("name", ""),
                description=data.get("description"),
                type=require_enum(ChannelType, data.get("type") or ChannelType.PUBLIC.value, "Type"),
                member_ids=int_list(data.get("memberIds"), "memberIds"),
            )
            return jsonify({"success": True, "channel": channel.to_dict()}), 201
        except Exception as e:
            return json_error(e)

    @app.route("/api/chat/channels/<int:channel_id>/messages", methods=["GET", "POST"], endpoint="api_chat_messages")
    @login_required
    def api_chat_messages(channel_id: int):
        try:
            if request.method == "GET":
                page = chat.list_messages(
                    current_actor(),
                    channel_id=channel_id,
                    cursor=request.args.get("cursor"),
                    limit=query_int("limit"),
                )
                return jsonify(page.to_dict()), 200

            data = json_body()
            parent_id = data.get("parentId")
            message = chat.post_message(
                current_actor(),
                channel_id=channel_id,
                content=data.get("content", ""),
                parent_id=require_int(parent_id, "parentId") if parent_id is not None else None,
                mentions=int_list(data.get("mentions"), "mentions"),
            )
            return jsonify({"message": message.to_dict()}), 201
        except Exception as e:
            return json_error(e)
