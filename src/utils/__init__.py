"""
Utils package.

Conventions:
- Models are Pydantic models; DynamoDB conversion lives on the model as
  `to_dynamodb_item()` / `from_dynamodb_item()`.
- Dates cross the API as ISO-8601 strings; storage timestamps are epoch
  milliseconds.
- Money amounts are Decimal end to end and are serialized as strings.
"""
