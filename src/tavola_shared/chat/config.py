"""
Chat assistant configuration

System prompt, loop bound and the tool declarations offered to the model.
"""

MAX_TOOL_CALLS = 5

TEMPERATURE = 0.7

FALLBACK_REPLY = "Sorry, I could not process your question. Please try again."

SYSTEM_PROMPT = """You are the friendly digital assistant of {restaurant_name}, an Italian restaurant with several locations in the Netherlands.

You help guests with:
- Browsing the menu and recommending dishes
- Making reservations
- Placing orders (pickup or delivery)
- Information about locations, opening hours and contact details

Rules:
- Reply in the language the guest writes in
- Be warm, hospitable and helpful
- Only use information returned by the functions; never invent dishes, prices or opening hours
- If you do not know something, suggest calling the restaurant
- Keep answers concise but informative
- For reservations you need: name, phone number, party size, date, time and location
- For orders you need: items (with menu_item_id and quantity), order type (pickup/delivery), name, phone number and location"""


TOOL_DEFINITIONS = [
    {
        "type": "function",
        "function": {
            "name": "lookup_menu",
            "description": (
                "Search menu items by search term, category or dietary preference. "
                "Use this to help guests with the menu."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "search_term": {
                        "type": "string",
                        "description": "Search term (e.g. 'pizza', 'vegetarian', 'margherita')",
                    },
                    "category": {
                        "type": "string",
                        "description": "Category name to filter on (e.g. 'Pizza', 'Pasta', 'Desserts')",
                    },
                    "dietary_filter": {
                        "type": "string",
                        "description": "Dietary label to filter on (e.g. 'vegetarian', 'vegan', 'gluten-free')",
                    },
                },
                "required": [],
                "additionalProperties": False,
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "create_reservation",
            "description": "Create a reservation for a guest. All required fields must be provided.",
            "parameters": {
                "type": "object",
                "properties": {
                    "customer_name": {"type": "string", "description": "Name of the guest"},
                    "customer_phone": {"type": "string", "description": "Phone number of the guest"},
                    "party_size": {"type": "number", "description": "Number of guests (1-20)"},
                    "reservation_date": {
                        "type": "string",
                        "description": "Reservation date in YYYY-MM-DD format",
                    },
                    "reservation_time": {
                        "type": "string",
                        "description": "Reservation time in HH:MM format",
                    },
                    "location_id": {"type": "string", "description": "UUID of the location"},
                    "customer_email": {
                        "type": "string",
                        "description": "Email address of the guest (optional)",
                    },
                    "notes": {"type": "string", "description": "Any remarks (optional)"},
                },
                "required": [
                    "customer_name",
                    "customer_phone",
                    "party_size",
                    "reservation_date",
                    "reservation_time",
                    "location_id",
                ],
                "additionalProperties": False,
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "create_order",
            "description": (
                "Place an order for a guest. Items must contain menu_item_id and quantity."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "customer_name": {"type": "string", "description": "Name of the customer"},
                    "customer_phone": {"type": "string", "description": "Phone number of the customer"},
                    "order_type": {
                        "type": "string",
                        "enum": ["pickup", "delivery"],
                        "description": "Order type: pickup or delivery",
                    },
                    "location_id": {"type": "string", "description": "UUID of the location"},
                    "items": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "menu_item_id": {
                                    "type": "string",
                                    "description": "UUID of the menu item",
                                },
                                "quantity": {"type": "number", "description": "Quantity"},
                                "special_instructions": {
                                    "type": "string",
                                    "description": "Special instructions (optional)",
                                },
                            },
                            "required": ["menu_item_id", "quantity"],
                            "additionalProperties": False,
                        },
                        "description": "Ordered items",
                    },
                    "delivery_address": {
                        "type": "string",
                        "description": "Delivery address including postal code (required for delivery)",
                    },
                    "customer_email": {
                        "type": "string",
                        "description": "Email address of the customer (optional)",
                    },
                },
                "required": [
                    "customer_name",
                    "customer_phone",
                    "order_type",
                    "location_id",
                    "items",
                ],
                "additionalProperties": False,
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_location_info",
            "description": (
                "Get information about a location: address, phone number, opening hours. "
                "Use 'all' or leave location_name empty for every location."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "location_name": {
                        "type": "string",
                        "description": "Name of the location, or 'all' for every location",
                    },
                },
                "required": [],
                "additionalProperties": False,
            },
        },
    },
]


def tool_names() -> list[str]:
    return [definition["function"]["name"] for definition in TOOL_DEFINITIONS]
