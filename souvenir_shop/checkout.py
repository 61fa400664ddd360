# souvenir_shop/checkout.py
"""WhatsApp checkout handoff.

There is no payment gateway: after an order is recorded the customer is sent
to a pre-filled WhatsApp chat with the shop, and payment is confirmed by hand.
"""
import os
from typing import Dict, List
from urllib.parse import quote

from dotenv import load_dotenv

load_dotenv()

WHATSAPP_PHONE = os.getenv("WHATSAPP_PHONE", "233553301044")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "GH₵")
SHOP_NAME = os.getenv("SHOP_NAME", "Blossom Souvenir")


def build_whatsapp_message(customer_name: str, lines: List[Dict], total: float, order_id: str = None) -> str:
    items_list = "\n".join(f"• {l['name']} (x{l['quantity']})" for l in lines)
    header = f"🌸 *New Order from {SHOP_NAME}*\n\n"
    if order_id:
        header += f"*Order:* {order_id}\n"
    return (
        header
        + f"*Customer:* {customer_name}\n"
        + f"*Total:* {CURRENCY_SYMBOL}{float(total):.2f}\n\n"
        + f"*Items:*\n{items_list}\n\n"
        + "_Payment via MoMo has been initiated._"
    )

def build_whatsapp_url(message: str, phone: str = None) -> str:
    phone = "".join(ch for ch in (phone or WHATSAPP_PHONE) if ch.isdigit())
    return f"https://wa.me/{phone}?text={quote(message, safe='')}"
