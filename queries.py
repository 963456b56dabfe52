from constants import METAFIELD_NAMESPACE

# =========================
# Read queries
# =========================
PRODUCTS_QUERY = """
query GetProducts($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      node {
        id
        title
        handle
        vendor
        productType
        tags
        status
        featuredImage { url }
        mediaCount { count }
        metafields(first: 20, namespace: "%s") {
          edges { node { namespace key value type } }
        }
      }
      cursor
    }
    pageInfo { hasNextPage endCursor }
  }
}
""" % METAFIELD_NAMESPACE

PAGES_QUERY = """
query GetPages($first: Int!, $after: String) {
  pages(first: $first, after: $after) {
    edges { node { id title handle bodySummary } cursor }
    pageInfo { hasNextPage endCursor }
  }
}
"""

COLLECTIONS_QUERY = """
query GetCollections($first: Int!, $after: String) {
  collections(first: $first, after: $after) {
    edges { node { id title handle image { url } } cursor }
    pageInfo { hasNextPage endCursor }
  }
}
"""

METAOBJECTS_QUERY = """
query GetMetaobjects($type: String!, $first: Int!, $after: String) {
  metaobjects(type: $type, first: $first, after: $after) {
    edges { node { id handle fields { key value } } cursor }
    pageInfo { hasNextPage endCursor }
  }
}
"""

NODES_QUERY = """
query GetNodes($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on MediaImage { id alt image { url } preview { image { url } } }
    ... on GenericFile { id alt preview { image { url } } }
  }
}
"""

PRODUCT_MEDIA_QUERY = """
query GetProductMedia($id: ID!, $first: Int!) {
  product(id: $id) {
    media(first: $first) {
      edges {
        node {
          ... on MediaImage {
            id
            alt
            mediaContentType
            image { url width height }
            preview { image { url } }
          }
        }
      }
    }
  }
}
"""

# =========================
# Mutations
# =========================
METAFIELDS_SET_MUTATION = """
mutation MetafieldsSet($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id namespace key value }
    userErrors { field message code }
  }
}
"""

METAFIELDS_DELETE_MUTATION = """
mutation MetafieldsDelete($metafields: [MetafieldIdentifierInput!]!) {
  metafieldsDelete(metafields: $metafields) {
    deletedMetafields { ownerId namespace key }
    userErrors { field message }
  }
}
"""

METAOBJECT_DEFINITION_CREATE_MUTATION = """
mutation MetaobjectDefinitionCreate($definition: MetaobjectDefinitionCreateInput!) {
  metaobjectDefinitionCreate(definition: $definition) {
    metaobjectDefinition { id type }
    userErrors { field message code }
  }
}
"""

METAOBJECT_CREATE_MUTATION = """
mutation MetaobjectCreate($metaobject: MetaobjectCreateInput!) {
  metaobjectCreate(metaobject: $metaobject) {
    metaobject { id handle }
    userErrors { field message code }
  }
}
"""

METAOBJECT_UPDATE_MUTATION = """
mutation MetaobjectUpdate($id: ID!, $metaobject: MetaobjectUpdateInput!) {
  metaobjectUpdate(id: $id, metaobject: $metaobject) {
    metaobject { id handle }
    userErrors { field message code }
  }
}
"""

METAOBJECT_DELETE_MUTATION = """
mutation MetaobjectDelete($id: ID!) {
  metaobjectDelete(id: $id) {
    deletedId
    userErrors { field message code }
  }
}
"""

STAGED_UPLOADS_CREATE_MUTATION = """
mutation StagedUploadsCreate($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets { url resourceUrl parameters { name value } }
    userErrors { field message }
  }
}
"""

FILE_CREATE_MUTATION = """
mutation FileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files { id alt }
    userErrors { field message code }
  }
}
"""

PRODUCT_CREATE_MEDIA_MUTATION = """
mutation ProductCreateMedia($productId: ID!, $media: [CreateMediaInput!]!) {
  productCreateMedia(productId: $productId, media: $media) {
    media {
      ... on MediaImage { id alt mediaContentType preview { image { url } } }
    }
    mediaUserErrors { field message code }
  }
}
"""

PRODUCT_DELETE_MEDIA_MUTATION = """
mutation ProductDeleteMedia($productId: ID!, $mediaIds: [ID!]!) {
  productDeleteMedia(productId: $productId, mediaIds: $mediaIds) {
    deletedMediaIds
    mediaUserErrors { field message code }
  }
}
"""

PRODUCT_REORDER_MEDIA_MUTATION = """
mutation ProductReorderMedia($id: ID!, $moves: [MoveInput!]!) {
  productReorderMedia(id: $id, moves: $moves) {
    job { id }
    mediaUserErrors { field message code }
  }
}
"""
