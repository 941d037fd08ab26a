"""Preparation progress reports from the warehouse floor."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from labdesk.access import actor_from, authorize
from labdesk.domain import labdesk
from labdesk.errors import Unprocessable
from labdesk.preparation.preparation import OrderPreparation


@labdesk.command(part_of="OrderPreparation")
class RecordPreparationProgress:
    order_id = Identifier(required=True)
    items = Text()  # JSON list of {product_id, quantity_prepared, is_prepared, notes}
    notes = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_email = String(max_length=254)
    actor_name = String(max_length=200)


@labdesk.command_handler(part_of=OrderPreparation)
class PreparationProgressHandler:
    @handle(RecordPreparationProgress)
    def record_progress(self, command):
        actor = actor_from(command)
        authorize(actor, "preparation:progress")

        if not command.items:
            raise Unprocessable({"items": ["Items are required"]})
        try:
            items_data = json.loads(command.items)
        except ValueError:
            raise Unprocessable({"items": ["Items must be a JSON list"]}) from None

        repo = current_domain.repository_for(OrderPreparation)
        prep = repo.get(command.order_id)
        prep.record_progress(items_data, notes=command.notes)
        repo.add(prep)
        return prep.progress
