from __future__ import annotations

from flask import Flask, request

from ..common.responses import api_endpoint, json_body, json_response
from ..container import Container
from .model import NewPayment, PaymentQuery


def register(app: Flask, container: Container) -> None:
    @app.route("/fees/payments", methods=["GET"], endpoint="fees_payments")
    @api_endpoint("payments GET API")
    def list_payments():
        payments = container.payment_service.list_payments(PaymentQuery.from_args(request.args))
        return json_response({"success": True, "data": {"payments": payments}})

    @app.route("/fees/payments", methods=["POST"], endpoint="fees_record_payment")
    @api_endpoint("payments POST API")
    def record_payment():
        payment = container.payment_service.record_payment(NewPayment.from_payload(json_body()))
        return json_response({"success": True, "data": payment, "message": "Payment recorded successfully"}, 201)

    @app.route("/fees/payments/<payment_id>/verify", methods=["POST"], endpoint="fees_verify_payment")
    @api_endpoint("payment verify API")
    def verify_payment(payment_id: str):
        body = json_body()
        payment = container.payment_service.verify_payment(payment_id, verified_by=str(body.get("verified_by") or ""))
        return json_response({"success": True, "data": payment, "message": "Payment verified successfully"})
