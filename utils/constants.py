"""
utils/constants.py

Purpose: Centralized static content

- All user-facing messages
- Reusable limits and defaults

(Prevents hardcoding across the codebase)
"""

# ============================================================
# ONBOARDING
# ============================================================

WELCOME_MESSAGE = "Hi, here is your Chat4Bread market platform. Who are you?"

ASK_NAME_RETRY_MESSAGE = """🙂 Sorry, I didn't catch your name.

Please tell me who you are, e.g. *I am Ana Silva*."""

ASK_LOCATION_MESSAGE = """👋 Nice to meet you, {name}!

📍 Where are you located? Send me your town or address."""

ASK_LOCATION_RETRY_MESSAGE = """📍 Sorry, I couldn't find that place.

Please send me your town or full address, e.g. *I live in Porto, Portugal*."""

ASK_TYPE_MESSAGE = """✅ Got it, you are around {address}.

Are you a 🧑‍🌾 *farmer* who wants to sell, or a 🛒 *consumer* who wants to buy?"""

ASK_TYPE_RETRY_MESSAGE = """🤔 I didn't get that.

Please tell me whether you are a *farmer* or a *consumer*."""

ONBOARDING_COMPLETE_MESSAGE = "🎉 Be welcomed! Your profile is complete."

WELCOME_FARMER_MESSAGE = """🎉 *Welcome to the market, farmer!*

You can now:
• Sell produce: _I sell 500 g of tomatoes for $10_
• Check prices: _What is the price of tomatoes?_"""

WELCOME_CONSUMER_MESSAGE = """🎉 *Welcome to the market!*

You can now:
• Find farmers: _Which farmers are near me?_
• Buy produce: _I want 200 g of tomatoes for $6_
• Check prices: _What is the price of tomatoes?_"""


# ============================================================
# ROUTER
# ============================================================

GREETING_FARMER_MESSAGE = """👋 Hello {name}! Ready to sell?

Tell me what you offer, e.g. _I sell 12 eggs for $3_."""

GREETING_CONSUMER_MESSAGE = """👋 Hello {name}! Hungry?

Ask me for farmers near you or tell me what you want to buy."""

UNSUPPORTED_INTENT_MESSAGE = "🙈 Sorry {name}, I understood {slug}, but I can't help with that yet."


# ============================================================
# MARKETPLACE
# ============================================================

NO_LOCATION_MESSAGE = "📍 I don't know where you are yet, so I can't look for farmers near you."

NO_FARMERS_NEARBY_MESSAGE = "😕 There are no farmers near you right now."

FARMERS_NEARBY_HEADER = "🧑‍🌾 *Farmers near you:*"

FARMER_LIST_ENTRY = "{index}. {name} ({distance} m)"

SELL_NOT_FARMER_MESSAGE = "🚫 Only farmers can sell products on Chat4Bread."

SELL_MISSING_DETAILS_MESSAGE = """✍️ To sell, tell me the product, the price and either a weight or a number of pieces.

Example: _I sell 500 g of tomatoes for $10_"""

SELL_MASS_CONFIRMATION = "✅ Your offer of *{quantity} g* of {product} for *${price}* is now online."

SELL_UNITS_CONFIRMATION = "✅ Your offer of *{quantity}* × {product} for *${price}* is now online."

BUY_MISSING_DETAILS_MESSAGE = """✍️ To buy, tell me the product, the price you want to pay and either a weight or a number of pieces.

Example: _I want 200 g of tomatoes for $6_"""

BUY_NOT_FULFILLABLE_MESSAGE = "😕 Sorry, nobody can fulfill this order right now. Try a higher price or a smaller quantity."

BUY_MASS_CONFIRMATION = "✅ You bought *{quantity} g* of {product} from {seller} for *${price}*."

BUY_UNITS_CONFIRMATION = "✅ You bought *{quantity}* × {product} from {seller} for *${price}*."

SELLER_MASS_NOTIFICATION = "🛒 {buyer} bought *{quantity} g* of your {product} for *${price}*."

SELLER_UNITS_NOTIFICATION = "🛒 {buyer} bought *{quantity}* × your {product} for *${price}*."

PRICE_MISSING_PRODUCT_MESSAGE = "✍️ Which product do you want to know the price of?"

PRICE_NO_OFFERS_MESSAGE = "😕 There are no offers for {product} yet."

PRICE_AVERAGE_MESSAGE = "📊 The average price of {product} is *${price}* per gram or piece."


# ============================================================
# ERRORS
# ============================================================

GENERIC_ERROR_MESSAGE = "😔 Sorry, something went wrong on our side. Please try again in a moment."
