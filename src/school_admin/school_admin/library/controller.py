from __future__ import annotations

from flask import Flask, request

from ..common.pagination import PageRequest
from ..common.responses import api_endpoint, json_body, json_response
from ..core.exceptions import ValidationError
from ..container import Container
from .commands import (
    CheckoutCommand,
    FineQuery,
    MemberQuery,
    MemberUpdate,
    NewBook,
    NewCopy,
    NewMember,
    RenewCommand,
    ReturnCommand,
    TransactionQuery,
)


def _caller_from_args() -> tuple[str, str]:
    school_id = request.args.get("school_id")
    user_id = request.args.get("user_id")
    if not school_id or not user_id:
        raise ValidationError("Missing required parameters")
    return school_id, user_id


def _caller_from_body(body: dict) -> tuple[str, str]:
    if not body.get("school_id") or not body.get("user_id"):
        raise ValidationError("Missing required fields")
    return str(body["school_id"]), str(body["user_id"])


def register(app: Flask, container: Container) -> None:
    # circulation
    @app.route("/admin/library/transactions/checkout", methods=["POST"], endpoint="library_checkout")
    @api_endpoint("checkout API")
    def checkout():
        result = container.circulation_service.checkout(CheckoutCommand.from_payload(json_body()))
        return json_response({"transaction": result.transaction, "message": result.message}, 201)

    @app.route("/admin/library/transactions/<transaction_id>/return", methods=["POST"], endpoint="library_return")
    @api_endpoint("return API")
    def return_book(transaction_id: str):
        result = container.circulation_service.return_book(ReturnCommand.from_payload(transaction_id, json_body()))
        return json_response(
            {"transaction": result.transaction, "fine_amount": result.fine_amount, "message": result.message}
        )

    @app.route("/admin/library/transactions/<transaction_id>/renew", methods=["POST"], endpoint="library_renew")
    @api_endpoint("renew API")
    def renew(transaction_id: str):
        result = container.circulation_service.renew(RenewCommand.from_payload(transaction_id, json_body()))
        return json_response(
            {
                "transaction": result.transaction,
                "message": result.message,
                "new_due_date": result.new_due_date,
                "renewals_remaining": result.renewals_remaining,
            }
        )

    @app.route("/admin/library/transactions", methods=["GET"], endpoint="library_transactions")
    @api_endpoint("transactions GET API")
    def list_transactions():
        page = container.circulation_service.list_transactions(TransactionQuery.from_args(request.args))
        return json_response({"transactions": page.items, "pagination": page.pagination()})

    # members
    @app.route("/admin/library/members", methods=["GET"], endpoint="library_members")
    @api_endpoint("library members GET API")
    def list_members():
        page = container.member_service.list_members(MemberQuery.from_args(request.args))
        return json_response({"members": page.items, "pagination": page.pagination()})

    @app.route("/admin/library/members", methods=["POST"], endpoint="library_create_member")
    @api_endpoint("library members POST API")
    def create_member():
        member = container.member_service.create_member(NewMember.from_payload(json_body()))
        return json_response({"member": member}, 201)

    @app.route("/admin/library/members/<member_id>", methods=["GET"], endpoint="library_member")
    @api_endpoint("library member GET API")
    def get_member(member_id: str):
        school_id, user_id = _caller_from_args()
        member = container.member_service.get_member(member_id, school_id=school_id, user_id=user_id)
        return json_response({"member": member})

    @app.route("/admin/library/members/<member_id>", methods=["PATCH", "PUT"], endpoint="library_update_member")
    @api_endpoint("library member PATCH API")
    def update_member(member_id: str):
        member = container.member_service.update_member(MemberUpdate.from_payload(member_id, json_body()))
        return json_response({"member": member, "message": "Member updated successfully"})

    @app.route("/admin/library/members/<member_id>", methods=["DELETE"], endpoint="library_remove_member")
    @api_endpoint("library member DELETE API")
    def remove_member(member_id: str):
        school_id, user_id = _caller_from_args()
        container.member_service.remove_member(member_id, school_id=school_id, user_id=user_id)
        return json_response({"message": "Member removed successfully"})

    # fines
    @app.route("/admin/library/fines", methods=["GET"], endpoint="library_fines")
    @api_endpoint("fines GET API")
    def list_fines():
        fines = container.fine_service.list_fines(FineQuery.from_args(request.args))
        return json_response({"fines": fines})

    @app.route("/admin/library/fines/<fine_id>/pay", methods=["POST"], endpoint="library_pay_fine")
    @api_endpoint("fine payment API")
    def pay_fine(fine_id: str):
        school_id, user_id = _caller_from_body(json_body())
        fine = container.fine_service.pay_fine(fine_id, school_id=school_id, user_id=user_id)
        return json_response({"fine": fine, "message": "Fine paid successfully"})

    # catalogue
    @app.route("/admin/library/books", methods=["GET"], endpoint="library_books")
    @api_endpoint("books GET API")
    def list_books():
        school_id, user_id = _caller_from_args()
        page = container.catalog_service.list_books(
            school_id=school_id,
            user_id=user_id,
            page=PageRequest.from_args(request.args.get("page"), request.args.get("limit")),
            search=(request.args.get("search") or "").strip(),
        )
        return json_response({"books": page.items, "pagination": page.pagination()})

    @app.route("/admin/library/books", methods=["POST"], endpoint="library_create_book")
    @api_endpoint("books POST API")
    def create_book():
        book = container.catalog_service.create_book(NewBook.from_payload(json_body()))
        return json_response({"book": book}, 201)

    @app.route("/admin/library/books/<book_id>/copies", methods=["POST"], endpoint="library_add_copy")
    @api_endpoint("book copies POST API")
    def add_copy(book_id: str):
        copy = container.catalog_service.add_copy(NewCopy.from_payload(book_id, json_body()))
        return json_response({"copy": copy}, 201)
