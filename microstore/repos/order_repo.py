# microstore/repos/order_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session
from microstore.data.models.order import OrderModel
from microstore.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # flush zeby dostac id, commit robi serwis
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_items(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .order_by(OrderItemModel.id)
            ).scalars()
        )

    def list_orders(self, user_id: int | None = None) -> list[OrderModel]:
        query = select(OrderModel).order_by(OrderModel.id.desc())
        if user_id is not None:
            query = query.where(OrderModel.user_id == user_id)
        return list(self.db.execute(query).scalars())

    def order_stats(self, exclude_status: str) -> tuple[int, object]:
        count, revenue = self.db.execute(
            select(func.count(OrderModel.id), func.coalesce(func.sum(OrderModel.total), 0))
            .where(OrderModel.status != exclude_status)
        ).one()
        return count, revenue

    def update_order_status(self, order: OrderModel, status: str) -> OrderModel:
        order.status = status
        self.db.flush()
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
