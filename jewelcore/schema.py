"""
Collections of the remote document store and the wire names of their fields.

The store is a generic REST API with no joins and no referential integrity,
so these names are the whole contract between the engine and the data.
"""

BARCODES = "/api/barcodes"
SALES = "/api/sales"
SALES_MASTERS = "/api/sales-masters"
RATES = "/api/rates"
ESTIMATION_MASTERS = "/api/estimation-masters"

# Record keys. documentId is preferred when the store provides it.
ID = "id"
DOCUMENT_ID = "documentId"

# Barcoded inventory unit
UNIT_CODE = "code"
UNIT_PRODUCT = "product"
UNIT_CATEGORY = "category"
UNIT_FIXED_PRICE = "staticProduct"
UNIT_WEIGHT = "weight"
UNIT_TOUCH = "touch"
UNIT_WASTAGE = "making_charges_or_wastages"
UNIT_PRICE = "price"
UNIT_QTY = "qty"
UNIT_TRAY = "trayno"
UNIT_CREATED_AT = "createdAt"

# Sale line item (older rows carry the code in "barcode")
LINE_INVOICE_ID = "invoice_id"
LINE_CODE = "code"
LINE_CODE_LEGACY = "barcode"
LINE_PRODUCT = "product"
LINE_WEIGHT = "weight"
LINE_TOUCH = "touch"
LINE_QTY = "qty"
LINE_PRICE = "price"
LINE_WASTAGE = "making_charges_or_wastages"
LINE_TOTAL = "total"

# Sale header
HEADER_INVOICE = "invoice"
HEADER_CUSTOMER = "cid"
HEADER_DATE = "date"
HEADER_PAYMENT_MODE = "paymentmode"
HEADER_SUBTOTAL = "subtotal"
HEADER_DISCOUNT_PERCENT = "discount_percentage"
HEADER_DISCOUNT_AMOUNT = "discount_amount"
HEADER_EXCHANGE_CREDIT = "exchange_credit"
HEADER_TAX_PERCENT = "taxpercentage"
HEADER_TAX_AMOUNT = "taxamount"
HEADER_CGST = "cgst"
HEADER_SGST = "sgst"
HEADER_TOTAL = "totalamount"
HEADER_TOTAL_QTY = "totalqty"

# Estimation header numbering field
ESTIMATION_NUMBER = "estimation_number"

# Rate entry (older rows carry the touch in "product")
RATE_TOUCH = "touch"
RATE_TOUCH_LEGACY = "product"
RATE_PRICE = "price"
RATE_UPDATED_AT = "updatedAt"
