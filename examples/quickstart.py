"""Quick start guide for hnswidx.

This example shows the minimal code needed to:
1. Create an in-memory vector index
2. Search for similar vectors
3. Snapshot the index and restore it
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
from hnswidx import HNSWIndex, HNSWParams


def main():
    print("="*60)
    print("hnswidx Quick Start")
    print("="*60)

    # Step 1: Create synthetic dataset
    print("\n1. Creating dataset...")
    rng = np.random.default_rng(42)

    # 100 vectors, 128 dimensions
    vectors = rng.standard_normal((100, 128)).astype(np.float32)

    print(f"   Created {len(vectors)} vectors of dimension {vectors.shape[1]}")

    # Step 2: Build index with edge wiring and layered descent turned on
    print("\n2. Building index...")

    params = HNSWParams(m=16, ef_search=50, connect_on_insert=True, multilayer_search=True)
    index = HNSWIndex(params, seed=42)

    for i, vector in enumerate(vectors):
        index.add(f"doc_{i}", vector)

    stats = index.get_stats()
    print(f"   Indexed {stats['total_vectors']} vectors ({stats['index_size']} bytes of vector data)")
    print(f"   Graph has {len(index.graph.layers)} layers")

    # Step 3: Search
    print("\n3. Searching...")

    k = 5
    results = index.search(vectors[0], k=k)

    print(f"   Top {k} results:")
    for rank, hit in enumerate(results, 1):
        print(f"      {rank}. {hit['id']} (score: {hit['score']:.4f})")

    # Step 4: Snapshot and restore
    print("\n4. Saving and restoring...")

    snapshot = index.save()
    restored = HNSWIndex()
    restored.load(snapshot)

    print(f"   Snapshot size: {len(snapshot)} bytes")
    print(f"   Restored {restored.get_stats()['total_vectors']} vectors")

    # Step 5: Delete
    print("\n5. Deleting doc_0...")

    restored.delete("doc_0")
    print(f"   Top hit now: {restored.search(vectors[0], k=1)[0]['id']}")

    connectivity = restored.get_graph_statistics()
    print(f"   Layer 0 edges: {connectivity['edge_count']}, "
          f"unreachable points: {connectivity['unreachable_count']}")

    print("\n" + "="*60)
    print("Quick Start Complete!")
    print("="*60)


if __name__ == "__main__":
    main()
