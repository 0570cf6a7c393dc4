"""
dynastream CLI

Commands:
- dynastream add/range/read/len/trim/del/info - Stream operations
- dynastream group create/read/ack/claim/pending - Consumer groups
- dynastream version
"""
