from .subgraph import SubgraphClient, SubgraphError
