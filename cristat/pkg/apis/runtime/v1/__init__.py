"""CRI runtime.v1 messages and RuntimeService stubs.

api_pb2 / api_pb2_grpc are the protoc (grpc_tools) output for api.proto in this
directory, compiled on first import. To check the generated modules in instead,
run from the repository root:

    python -m grpc_tools.protoc -I. --python_out=. --grpc_python_out=. \
        cristat/pkg/apis/runtime/v1/api.proto
"""
import grpc

api_pb2, api_pb2_grpc = grpc.protos_and_services("cristat/pkg/apis/runtime/v1/api.proto")
