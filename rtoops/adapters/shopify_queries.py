# rtoops/adapters/shopify_queries.py
"""
Shopify Admin GraphQL 文档。

return line item 上的 fulfillmentLineItem 只在 ReturnLineItem 类型上存在，
必须用 inline fragment 取；对账时靠它把三套 id 串起来。
"""
from __future__ import annotations

RETURNABLE_FULFILLMENTS = """
query ($orderId: ID!) {
  returnableFulfillments(orderId: $orderId, first: 20) {
    nodes {
      returnableFulfillmentLineItems(first: 250) {
        nodes {
          quantity
          fulfillmentLineItem { id }
        }
      }
    }
  }
}
"""

RETURN_CREATE = """
mutation ($input: ReturnInput!) {
  returnCreate(returnInput: $input) {
    userErrors { field message }
    return {
      id
      returnLineItems(first: 50) {
        edges {
          node {
            id
            quantity
            ... on ReturnLineItem {
              fulfillmentLineItem { id }
            }
          }
        }
      }
    }
  }
}
"""

RETURN_FOR_PROCESSING = """
query ($rid: ID!, $oid: ID!) {
  return(id: $rid) {
    id
    returnLineItems(first: 50) {
      edges {
        node {
          id
          quantity
          ... on ReturnLineItem {
            fulfillmentLineItem { id }
          }
        }
      }
    }
    reverseFulfillmentOrders(first: 10) {
      nodes {
        lineItems(first: 100) {
          nodes { id fulfillmentLineItem { id } totalQuantity }
        }
      }
    }
  }
  order(id: $oid) {
    fulfillmentOrders(first: 10) {
      nodes {
        assignedLocation { location { id } }
      }
    }
  }
}
"""

RETURN_PROCESS = """
mutation ($input: ReturnProcessInput!) {
  returnProcess(input: $input) {
    userErrors { field message code }
    return { id status }
  }
}
"""
